"""Load KilnConfig from config.json.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from kiln._errors import ConfigError
from kiln.config import (
    CONFIG_FILE_NAME,
    DatasourceConfig,
    DebugConfig,
    DevServerConfig,
    HtmlConfig,
    KilnConfig,
    PathConfig,
    RssConfig,
    ThemeConfig,
)

_REQUIRED_KEYS = ("siteName", "baseUrl", "description", "author")

_EXAMPLE_CONFIG = {
    "siteName": "site name",
    "baseUrl": "https://my-blog.com",
    "description": "description",
    "author": "Jane Doe",
    "theme": {"templates": "templates", "assets": ["static"], "output": "build"},
    "paths": {"posts": "posts", "pages": ["pages"]},
}


def load_config(
    root: Path | str,
    config_file: str = CONFIG_FILE_NAME,
    **overrides: Any,
) -> KilnConfig:
    """Load KilnConfig from ``root/config_file``.

    Recognised overrides: ``host``, ``port``, ``base_url``. Overrides take
    precedence over the file.

    Raises:
        ConfigError: If the file is missing, is not valid JSON, or lacks a
            required key. The message shows the expected shape.

    """
    root = Path(root).resolve()
    data = _read_config_file(root, config_file)

    missing = [k for k in _REQUIRED_KEYS if not isinstance(data.get(k), str)]
    if missing:
        msg = f"{config_file} is missing required keys: {', '.join(missing)}.\n{_example()}"
        raise ConfigError(msg)

    dev_data = _section(data, "devServer")
    dev_server = DevServerConfig(
        host=str(_override(overrides, "host", dev_data.get("host", "127.0.0.1"))),
        port=int(_override(overrides, "port", dev_data.get("port", 3000))),
    )

    return KilnConfig(
        site_name=data["siteName"],
        base_url=str(_override(overrides, "base_url", data["baseUrl"])),
        description=data["description"],
        author=data["author"],
        root=root,
        theme=_theme(_section(data, "theme")),
        paths=_paths(_section(data, "paths")),
        rss=_rss(_section(data, "rss")),
        html=_html(_section(data, "html")),
        debug=DebugConfig(enabled=bool(_section(data, "debug").get("enabled", False))),
        dev_server=dev_server,
        datasource=_datasource(_section(data, "staticDatasource")),
        config_file=config_file,
    )


def _read_config_file(root: Path, config_file: str) -> dict[str, Any]:
    path = root / config_file
    if not path.is_file():
        msg = (
            f"Missing file: {config_file} at {root}.\n"
            f"Add {config_file} to the root with the following structure:\n{_example()}"
        )
        raise ConfigError(msg)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}\n{_example()}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{config_file} must contain a JSON object.\n{_example()}"
        raise ConfigError(msg)
    return data


def _example() -> str:
    return json.dumps(_EXAMPLE_CONFIG, indent=2)


def _override(overrides: dict[str, Any], key: str, default: Any) -> Any:
    value = overrides.get(key)
    return default if value is None else value


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _string_list(value: object, default: tuple[str, ...]) -> tuple[str, ...]:
    """Accept either a single string or a list of strings."""
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and value:
        return tuple(str(v) for v in value)
    return default


def _theme(data: dict[str, Any]) -> ThemeConfig:
    defaults = ThemeConfig()
    flatten = data.get("flattenAssets")
    return ThemeConfig(
        templates=data.get("templates", defaults.templates),
        assets=_string_list(data.get("assets"), defaults.assets),
        output=data.get("output", defaults.output),
        flatten_assets=(
            frozenset(_string_list(flatten, ()))
            if flatten is not None
            else defaults.flatten_assets
        ),
    )


def _paths(data: dict[str, Any]) -> PathConfig:
    defaults = PathConfig()
    return PathConfig(
        posts=data.get("posts", defaults.posts),
        pages=_string_list(data.get("pages"), defaults.pages),
    )


def _rss(data: dict[str, Any]) -> RssConfig:
    defaults = RssConfig()
    return RssConfig(
        enabled=bool(data.get("enabled", defaults.enabled)),
        file_name=data.get("fileName", defaults.file_name),
        title=data.get("title"),
        description=data.get("description"),
        language=data.get("language", defaults.language),
        max_items=int(data.get("maxItems", defaults.max_items)),
        include_full_content=bool(
            data.get("includeFullContent", defaults.include_full_content),
        ),
    )


def _html(data: dict[str, Any]) -> HtmlConfig:
    defaults = HtmlConfig()
    fmt = str(data.get("format", defaults.format)).lower()
    if fmt not in ("default", "minify", "beautify"):
        msg = f"html.format must be one of default, minify, beautify (got {fmt!r})"
        raise ConfigError(msg)
    return HtmlConfig(
        format=fmt,  # type: ignore[arg-type]
        indent_size=int(data.get("indentSize", defaults.indent_size)),
    )


def _datasource(data: dict[str, Any]) -> DatasourceConfig:
    defaults = DatasourceConfig()
    return DatasourceConfig(
        enabled=bool(data.get("enabled", defaults.enabled)),
        output_dir=data.get("outputDir", defaults.output_dir),
        collect_attribute=data.get("collectAttribute", defaults.collect_attribute),
        images_file_name=data.get("imagesFileName", defaults.images_file_name),
        config_file=data.get("configFile", defaults.config_file),
    )
