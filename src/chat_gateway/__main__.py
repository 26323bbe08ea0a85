"""
Point d'entrée pour `python -m chat_gateway`.
"""
import argparse
import logging

import uvicorn

from .config.loader import load_config
from .config.settings import Settings
from .main import create_app


def main():
    """Fonction principale."""
    parser = argparse.ArgumentParser(description="Chat Gateway")
    parser.add_argument("--config", default=None, help="Chemin vers config.toml")
    parser.add_argument("--host", default=None, help="Host (défaut: config ou 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (défaut: config ou 8000)")
    parser.add_argument("--data-dir", default=None, help="Répertoire du cache média")
    parser.add_argument("--log-level", default=None, help="Niveau de log (DEBUG, INFO, ...)")

    args = parser.parse_args()

    settings = Settings.from_config(load_config(args.config))
    if args.data_dir:
        settings.cache.data_dir = args.data_dir
    if args.log_level:
        settings.log_level = args.log_level.upper()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    logging.getLogger(__name__).info(f"🚀 Démarrage de Chat Gateway sur {host}:{port}")

    uvicorn.run(create_app(settings), host=host, port=port)


if __name__ == "__main__":
    main()
