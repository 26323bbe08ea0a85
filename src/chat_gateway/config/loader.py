"""
Chargement de la configuration TOML.

Ordre de résolution du fichier:
- argument explicite `config_path`
- variable d'environnement CHAT_GATEWAY_CONFIG
- `config.toml` à la racine du projet (optionnel: valeurs par défaut si absent)
"""
import logging
import os
import re
from pathlib import Path
from typing import Dict, Any, Optional

from ..core.constants import CONFIG_ENV_VAR
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Cache global de configuration
_config_cache: Optional[Dict[str, Any]] = None

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(obj: Any) -> Any:
    """
    Récursivement étend les variables d'environnement ${VAR} dans la config.

    Args:
        obj: Valeur à traiter (str, dict, list)

    Returns:
        Valeur avec variables d'environnement expansées
    """
    if isinstance(obj, str):
        def replace_env_var(match):
            var_name = match.group(1)
            return os.environ.get(var_name, match.group(0))
        return _ENV_VAR_PATTERN.sub(replace_env_var, obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


def _clear_config_cache():
    """Vide le cache de configuration."""
    global _config_cache
    _config_cache = None


def _default_config_path() -> Path:
    # Structure: project/src/chat_gateway/config/loader.py
    return Path(__file__).resolve().parents[3] / "config.toml"


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        import tomllib
    except ImportError:
        try:
            import tomli as tomllib
        except ImportError:
            raise ConfigurationError(
                message="tomllib ou tomli requis pour charger la configuration",
                config_key="dependencies"
            )

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            message=f"Configuration TOML invalide ({path}): {e}",
            config_key="config_path"
        )


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Charge la configuration depuis config.toml.

    Args:
        config_path: Chemin vers le fichier config (optionnel)

    Returns:
        Dictionnaire de configuration (vide si aucun fichier par défaut)

    Raises:
        ConfigurationError: Si le fichier explicite n'existe pas ou est invalide
    """
    global _config_cache

    if _config_cache is not None and config_path is None:
        return _config_cache

    explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
    path = Path(explicit) if explicit else _default_config_path()

    if not path.exists():
        if explicit:
            raise ConfigurationError(
                message=f"Fichier de configuration non trouvé: {path}",
                config_key="config_path"
            )
        logger.info("[CONFIG] Pas de config.toml, valeurs par défaut utilisées")
        _config_cache = {}
        return _config_cache

    _config_cache = _expand_env_vars(_read_toml(path))
    logger.info(f"[CONFIG] Configuration chargée depuis {path}")
    return _config_cache


def reload_config(config_path: str = None) -> Dict[str, Any]:
    """
    Recharge la configuration depuis le fichier.

    Returns:
        Nouvelle configuration chargée
    """
    _clear_config_cache()
    return load_config(config_path)


def get_config() -> Dict[str, Any]:
    """
    Retourne la configuration en cache.

    Returns:
        Configuration actuelle
    """
    if _config_cache is None:
        return load_config()
    return _config_cache
