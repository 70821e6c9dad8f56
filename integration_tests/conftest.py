"""Pytest configuration for integration tests.

Integration tests stream to a real Hue Bridge and require actual credentials
(HUESTREAM_BRIDGE_HOST, HUESTREAM_USERNAME, HUESTREAM_CLIENT_KEY,
HUESTREAM_AREA_ID) in env.local or the environment.
"""

import warnings

warnings.filterwarnings("ignore", category=DeprecationWarning, module="mbedtls.*")
