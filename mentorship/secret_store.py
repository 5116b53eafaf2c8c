"""Secret lookup for local development (environment) or GCP Secret Manager.

This module provides a minimal interface: `load_secret(name)` returns the
secret value as a string, or None if it is not configured anywhere.

Behavior:
- An environment variable with the secret's name always wins. This is how
  local development and tests provide secrets.
- Otherwise, if a GCP project can be detected (via `GCP_PROJECT_ID`,
  `GCP_PROJECT`, `GOOGLE_CLOUD_PROJECT` or the metadata server), the latest
  enabled version of the Secret Manager secret with the same name is read.
"""

import logging
import os
from functools import lru_cache
from typing import Optional

import requests
from google.api_core import exceptions as gcp_exceptions  # type: ignore
from google.cloud import secretmanager  # type: ignore

logger = logging.getLogger(__name__)


def _metadata_project() -> Optional[str]:
    """Try to retrieve the project-id from GCE/Cloud Run metadata server.

    Returns None if metadata is not reachable or the request fails.
    """
    try:
        # Metadata server requires the header Metadata-Flavor: Google
        r = requests.get(
            "http://metadata.google.internal/computeMetadata/v1/project/project-id",
            headers={"Metadata-Flavor": "Google"},
            timeout=0.5,
        )
        if r.status_code == 200:
            return r.text.strip()
    except requests.RequestException:
        return None
    return None


def _detect_project() -> Optional[str]:
    """Return the GCP project id string from common environment variables."""
    env = (
        os.environ.get("GCP_PROJECT_ID")
        or os.environ.get("GCP_PROJECT")
        or os.environ.get("GOOGLE_CLOUD_PROJECT")
    )
    if env:
        return env
    # Fall back to metadata server if available
    return _metadata_project()


def get_secret_backend() -> tuple[str, Optional[object], Optional[str]]:
    """Return (backend_name, client, project) for the secret store.

    The backend name is either 'gcp' or 'env'. When no project can be
    detected there is nothing to ask, so the 'env' backend is returned with
    no client.
    """
    project = _detect_project()
    if not project:
        return ("env", None, None)
    client = secretmanager.SecretManagerServiceClient()
    return ("gcp", client, project)


@lru_cache(maxsize=32)
def _load_managed_secret(name: str) -> Optional[str]:
    backend, client, project = get_secret_backend()
    if backend != "gcp":
        return None
    version = f"projects/{project}/secrets/{name}/versions/latest"
    try:
        payload = client.access_secret_version(request={"name": version}).payload.data
    except gcp_exceptions.NotFound:
        return None
    except gcp_exceptions.GoogleAPICallError as exc:
        logger.error("Secret Manager lookup failed for %s: %s", name, exc)
        return None
    try:
        return payload.decode()
    except UnicodeDecodeError:
        logger.error("Secret %s is not valid UTF-8", name)
        return None


def load_secret(name: str) -> Optional[str]:
    """Load the secret `name`. Returns the value or None when unset."""
    value = os.environ.get(name)
    if value:
        return value
    return _load_managed_secret(name)


def load_multiline_secret(name: str) -> Optional[str]:
    """Like `load_secret` but expands literal ``\\n`` sequences (PEM keys in env vars)."""
    value = load_secret(name)
    if value is None:
        return None
    return value.replace("\\n", "\n")
