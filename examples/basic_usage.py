"""
Basic usage example for relaylog.

Set ``LOGGER_REMOTE_SERVER`` (or ``RELAYLOG_REMOTE_SERVER``) to an HTTP
endpoint to have ERROR and FATAL lines batched there; without it everything
stays on the console.
"""

import relaylog


def main() -> None:
    relaylog.enable_debug()
    relaylog.debug("starting with %d workers", 2)
    relaylog.info("listening on %s:%d", "127.0.0.1", 8080)
    relaylog.warn("config file %r not found, using defaults", "app.toml")

    for attempt in range(3):
        # Identical lines within a batch are delivered once
        relaylog.error("upstream %s unavailable", "billing")
        relaylog.info("retry %d", attempt)

    if not relaylog.flush(timeout=2.0):
        relaylog.warn("remote flush did not complete")

    relaylog.fatal("giving up after %d attempts", 3)


if __name__ == "__main__":
    main()
