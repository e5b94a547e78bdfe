"""Noxfile for the flow log decorator project.

Provides automated sessions for:
- Linting and formatting
- Testing with coverage
- Type checking
- Security scanning
- Lambda and package building
"""

import nox

# Python versions to test against
PYTHON_VERSIONS = ["3.11"]

# Common locations
PACKAGES = ["flowlog", "firehose_decorator", "ingestor"]
SRC_DIR = "src"
TESTS_DIR = "tests"


@nox.session(python=PYTHON_VERSIONS)
def tests(session):
    """Run the test suite with coverage."""
    session.install(".[test]")

    session.run(
        "pytest",
        *[f"--cov={package}" for package in PACKAGES],
        "--cov-report=term-missing",
        "--cov-report=html",
        "--cov-fail-under=80",
        *session.posargs,
    )


@nox.session(python=PYTHON_VERSIONS)
def lint(session):
    """Run linting with ruff."""
    session.install("ruff")
    session.run("ruff", "check", SRC_DIR, TESTS_DIR)


@nox.session(python=PYTHON_VERSIONS)
def format(session):
    """Format code with black and ruff."""
    session.install("black", "ruff")
    session.run("black", SRC_DIR, TESTS_DIR)
    session.run("ruff", "check", "--fix", SRC_DIR, TESTS_DIR)


@nox.session(python=PYTHON_VERSIONS)
def typecheck(session):
    """Run type checking with mypy."""
    session.install(".")
    session.install("mypy", "types-PyYAML", "boto3-stubs[ec2,ssm,firehose]")
    session.run("mypy", SRC_DIR)


@nox.session(python=PYTHON_VERSIONS)
def security(session):
    """Run security checks."""
    session.install("bandit[toml]", "safety")
    session.run("bandit", "-r", SRC_DIR)
    session.run("safety", "check")


@nox.session(python=PYTHON_VERSIONS)
def package(session):
    """Build the package."""
    session.install("build")
    session.run("python", "-m", "build")


@nox.session(python=PYTHON_VERSIONS)
def lambda_bundle(session):
    """Build a Lambda deployment directory with dependencies and config."""
    session.run("rm", "-rf", "build/lambda", external=True)
    session.install(".", "--target", "build/lambda", "--no-compile")
    session.run("cp", "-r", "config", "build/lambda/config", external=True)
    session.log("Lambda bundle written to build/lambda; set FLOWLOG_CONFIG_DIR=/var/task/config")


@nox.session
def clean(session):
    """Clean up build artifacts and cache files."""
    import shutil
    from pathlib import Path

    # Directories to clean
    clean_dirs = [
        ".pytest_cache",
        ".coverage",
        "htmlcov",
        "dist",
        "build",
        "*.egg-info",
        ".mypy_cache",
        ".ruff_cache",
        "__pycache__",
    ]

    for pattern in clean_dirs:
        for path in Path(".").glob(f"**/{pattern}"):
            if path.is_dir():
                session.log(f"Removing directory: {path}")
                shutil.rmtree(path)
            elif path.is_file():
                session.log(f"Removing file: {path}")
                path.unlink()


# Default session when running `nox` without arguments
nox.options.sessions = ["tests", "lint", "typecheck"]
