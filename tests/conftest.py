import warnings

# Ignore warnings from third-party TLS bindings
warnings.filterwarnings("ignore", category=DeprecationWarning, module="mbedtls.*")

# Import stream fixtures so they are available to all tests
from tests.fixtures.stream_fixtures import *  # noqa: E402, F403
