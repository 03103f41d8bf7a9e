"""
Configuration module for the voice relay service.

Key components:
- constants: protocol values (message types, close codes), connection defaults
  and the timings used by the reconnect policy, the test relay keepalive and
  the call verification engine.
- logging_config: console and rotating file logging for the application logger.

Usage examples:
```python
from voice_relay.config.constants import LOGGER_NAME, RECONNECT_DELAY
from voice_relay.config.logging_config import configure_logging

logger = configure_logging()
logger.info("Application started")
```
"""
