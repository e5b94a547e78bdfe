"""Geocode API credential retrieval from SSM Parameter Store."""

import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import CredentialError

logger = logging.getLogger(__name__)


class CredentialProvider:
    """Fetches a SecureString parameter once and caches it.

    The cached value is never refreshed; a rotated key is picked up on the
    next cold start.
    """

    def __init__(self, ssm_client, parameter_name: str):
        self.ssm_client = ssm_client
        self.parameter_name = parameter_name
        self._value: Optional[str] = None

    def get(self) -> str:
        """Return the credential, fetching it on first use.

        Raises:
            CredentialError: If the parameter is missing or unreadable.
        """
        if self._value is None:
            self._value = self._fetch()
        return self._value

    def _fetch(self) -> str:
        try:
            response = self.ssm_client.get_parameter(Name=self.parameter_name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            if code == 'ParameterNotFound':
                raise CredentialError(f"Parameter {self.parameter_name} not found") from e
            raise CredentialError(f"Unable to read parameter {self.parameter_name}: {code}") from e
        except BotoCoreError as e:
            raise CredentialError(f"Unable to read parameter {self.parameter_name}: {e}") from e

        value = response.get('Parameter', {}).get('Value')
        if not value:
            raise CredentialError(f"Parameter {self.parameter_name} is empty")

        logger.info(f"Loaded geocode credential from {self.parameter_name}")
        return value
