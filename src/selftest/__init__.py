"""Platform self-test.

Provisions ephemeral fixtures, runs a fixed, ordered catalog of integration
checks against a live deployment of the platform, and asks the platform's
AI endpoint to summarize the results.

Example:
    >>> from selftest import SelfTestSession, load_config
    >>> async with SelfTestSession.from_config(load_config("selftest.yaml")) as session:
    ...     await session.sign_in()
    ...     report = await session.run_all()
"""

__version__ = "0.1.0"

from selftest.config import SelfTestConfig, load_config  # noqa: E402
from selftest.errors import SelfTestError  # noqa: E402
from selftest.session import SelfTestSession  # noqa: E402

__all__ = ["SelfTestConfig", "SelfTestError", "SelfTestSession", "__version__", "load_config"]
