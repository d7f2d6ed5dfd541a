import json
from pathlib import Path
from typing import Optional

import yaml

from ..config import I18nOptions, SiteConfig
from ..errors import ConfigError


def load_config(path: str | Path) -> tuple[SiteConfig, Optional[I18nOptions]]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(str(path), str(exc)) from exc
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")

    i18n_data = data.pop("i18n", None)
    if i18n_data is not None and not isinstance(i18n_data, dict):
        raise ConfigError(str(path), "i18n must be a mapping")
    config = SiteConfig.from_dict(data, source=str(path))
    i18n = I18nOptions.from_dict(i18n_data, source=f"{path}:i18n") if i18n_data is not None else None
    return config, i18n


def save_config(path: str | Path, config: SiteConfig, i18n: Optional[I18nOptions] = None) -> None:
    path = Path(path)
    data = config.to_dict()
    if i18n is not None:
        data["i18n"] = i18n.to_dict()
    if path.suffix.lower() in {".yml", ".yaml"}:
        path.write_text(yaml.safe_dump(data, allow_unicode=True, sort_keys=False), encoding="utf-8")
    else:
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
