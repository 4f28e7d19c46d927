"""Public helpers for packer_cli components."""

from __future__ import annotations

from .client import PackerClient, PackerClientError
from .config import ConfigLoadError, load_client_config
from .messages import decode_message
from .models import PackerClientConfig
from .outputs import create_aggregator
from .wire import LineDecodeError, decode_line, encode_fields

__all__ = [
    "ConfigLoadError",
    "LineDecodeError",
    "PackerClient",
    "PackerClientConfig",
    "PackerClientError",
    "create_aggregator",
    "decode_line",
    "decode_message",
    "encode_fields",
    "load_client_config",
]
