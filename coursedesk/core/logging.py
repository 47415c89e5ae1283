# coursedesk/core/logging.py
import logging
import sys

_CONFIGURED = False


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configura o logging da aplicação (stdout, uma linha por evento).

    Chamadas repetidas só ajustam o nível; os handlers são instalados uma vez.
    """
    global _CONFIGURED
    root = logging.getLogger()
    if not _CONFIGURED:
        logging.basicConfig(
            level=level.upper(),
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            handlers=[logging.StreamHandler(sys.stdout)],
        )
        _CONFIGURED = True
    root.setLevel(level.upper())

    # menos ruído do SQLAlchemy
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return logging.getLogger("coursedesk")
