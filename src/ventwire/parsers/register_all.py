"""
Register all built-in frame parsers.

Call register_all_parsers() at application startup. It is safe to call
more than once and from several threads at once.
"""

import logging
import threading

logger = logging.getLogger(__name__)

_register_lock = threading.Lock()


def register_all_parsers() -> None:
    """Register the CPAP and BIPAP frame parsers with the global registry."""
    from ventwire.parsers.bipap import BIPAPFrameParser
    from ventwire.parsers.cpap import CPAPFrameParser
    from ventwire.parsers.registry import parser_registry

    with _register_lock:
        for parser_cls in (CPAPFrameParser, BIPAPFrameParser):
            parser = parser_cls()
            if parser_registry.is_registered(parser.device_type):
                continue
            parser_registry.register(parser)
            logger.info(f"Registered {parser.device_type.value} frame parser")

        logger.debug(
            f"Parser registration complete: {len(parser_registry)} parser(s) available"
        )
