"""Template composer — content templates rendered into shared layouts.

Resolution order for the content template of a document:

1. ``template`` in the document's front matter, relative to the templates
   directory (``.html`` appended when there is no suffix).  References that
   escape the templates directory or do not exist are rejected with a
   warning.
2. The kind's conventional template (``post.html``, ``page.html``, ...).
3. A built-in fallback.

Documents whose source is itself a template (``.jinja``) skip this and
render their own body.

Layouts come from ``templates/layouts/<name>.html``.  A missing named
layout falls back to ``default``; a missing ``default`` falls back to the
built-in layout.  A ``layout`` of ``none``/``false``/null renders the
content unwrapped.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jinja2
from markupsafe import Markup

from kiln._errors import TemplateError
from kiln.templating.blocks import REGISTRY_KEY, BlockRegistry, block_globals
from kiln.templating.fallback import DEFAULT_LAYOUT, FALLBACK_TEMPLATES
from kiln.templating.filters import TEMPLATE_FILTERS, debug
from kiln.templating.html import debug_comment, html_processor, insert_before_body_close

if TYPE_CHECKING:
    from kiln.config import KilnConfig
    from kiln.content.models import ContentDocument, Page, Post
    from kiln.content.parser import ContentParser

DEFAULT_LAYOUT_NAME = "default"
TEMPLATE_SUFFIX = ".html"

_NO_LAYOUT = frozenset({"none", "false", ""})


class TemplateComposer:
    """Renders documents through content templates and layouts.

    Args:
        config: Site configuration.
        parser: Content parser backing the ``markdown`` filter.

    """

    def __init__(self, config: KilnConfig, parser: ContentParser | None = None) -> None:
        self._config = config
        self._templates_root = config.templates_path
        self._process_html = html_processor(config.html)
        self._warned: set[str] = set()
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self._templates_root)),
            autoescape=True,
            auto_reload=True,
            keep_trailing_newline=True,
        )
        self._env.globals.update(block_globals())
        self._env.globals["debug"] = debug
        self._env.filters.update(TEMPLATE_FILTERS)
        if parser is not None:
            self._env.filters["markdown"] = lambda text: Markup(
                parser.render_markdown(str(text or ""))
            )

    @property
    def env(self) -> jinja2.Environment:
        """The underlying Jinja environment."""
        return self._env

    def reload(self) -> None:
        """Forget compiled templates and repeated-warning state."""
        if self._env.cache is not None:
            self._env.cache.clear()
        self._warned.clear()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _warn_once(self, message: str) -> None:
        if message in self._warned:
            return
        self._warned.add(message)
        print(f"  Warning: {message}", file=sys.stderr)

    def _inside_root(self, reference: str, base: Path) -> Path | None:
        """Resolve *reference* under *base*; None if it escapes *base*."""
        candidate = base / reference
        if not candidate.suffix:
            candidate = candidate.with_suffix(TEMPLATE_SUFFIX)
        resolved = candidate.resolve()
        if not resolved.is_relative_to(base.resolve()):
            return None
        return resolved

    def _load_file(self, path: Path) -> jinja2.Template:
        name = path.relative_to(self._templates_root.resolve()).as_posix()
        try:
            return self._env.get_template(name)
        except jinja2.TemplateError as exc:
            msg = f"Failed to compile template {name!r}: {exc}"
            raise TemplateError(msg) from exc

    def resolve_template(
        self,
        kind: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[jinja2.Template, str]:
        """Pick the content template for a document of *kind*.

        Returns:
            The template and a label naming where it came from.

        """
        reference = (metadata or {}).get("template")
        if isinstance(reference, str) and reference.strip():
            resolved = self._inside_root(reference.strip(), self._templates_root)
            if resolved is None:
                self._warn_once(
                    f"Template {reference!r} is outside the templates directory, ignoring"
                )
            elif not resolved.is_file():
                self._warn_once(f"Template {reference!r} not found, using {kind}{TEMPLATE_SUFFIX}")
            else:
                return self._load_file(resolved), str(resolved.relative_to(self._templates_root.resolve()))

        conventional = self._templates_root / f"{kind}{TEMPLATE_SUFFIX}"
        if conventional.is_file():
            return self._load_file(conventional.resolve()), conventional.name

        self._warn_once(f"Template {conventional.name} not found, using built-in fallback")
        source = FALLBACK_TEMPLATES.get(kind, "{{ content }}")
        return self._env.from_string(source), f"<built-in {kind}>"

    def resolve_layout(self, name: str) -> tuple[jinja2.Template, str]:
        """Find layout *name*, falling back to ``default`` then the built-in."""
        layouts = self._config.layouts_path
        resolved = self._inside_root(name, layouts)
        if resolved is not None and resolved.is_file():
            return self._load_file(resolved), name

        if name != DEFAULT_LAYOUT_NAME:
            self._warn_once(f"Layout {name!r} not found, using {DEFAULT_LAYOUT_NAME!r}")
            return self.resolve_layout(DEFAULT_LAYOUT_NAME)

        return self._env.from_string(DEFAULT_LAYOUT), "<built-in default>"

    @staticmethod
    def _layout_name(data: dict[str, Any]) -> str | None:
        layout = data.get("layout", DEFAULT_LAYOUT_NAME)
        if layout is None or layout is False:
            return None
        name = str(layout).strip()
        if name.lower() in _NO_LAYOUT:
            return None
        return name

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render(self, template: jinja2.Template, data: dict[str, Any], label: str) -> str:
        try:
            return template.render(data)
        except TemplateError:
            raise
        except Exception as exc:
            # Template expressions can raise arbitrary exceptions
            msg = f"Failed to render {label}: {exc}"
            raise TemplateError(msg) from exc

    def render_with_layout(
        self,
        template: jinja2.Template,
        data: dict[str, Any],
        *,
        label: str = "<template>",
    ) -> str:
        """Render *template*, then wrap it in the layout named by ``data["layout"]``.

        ``{% call content("name") %}`` bodies in the content template are
        collected into a registry local to this call and substituted for the
        matching ``{% call block("name") %}`` regions of the layout.

        Args:
            template: Content template.
            data: Render data.  ``layout`` selects the layout; ``content`` is
                reserved for the layout pass.
            label: Name used in error messages and the debug trace.

        Raises:
            TemplateError: If either render fails.

        """
        registry = BlockRegistry()
        pass_data = {k: v for k, v in data.items() if k != "content"}
        pass_data[REGISTRY_KEY] = registry
        layout_label: str | None = None
        try:
            html = self._render(template, pass_data, label)
            layout_name = self._layout_name(data)
            if layout_name is not None:
                layout, layout_label = self.resolve_layout(layout_name)
                pass_data["content"] = Markup(html)
                html = self._render(layout, pass_data, layout_label)
        finally:
            registry.clear()

        html = self._process_html(html)
        if self._config.debug.enabled:
            html = insert_before_body_close(html, debug_comment(label, layout_label, data))
        return html

    def render_document(self, kind: str, doc: ContentDocument, data: dict[str, Any]) -> str:
        """Render *doc* with its own body as template, or through its kind's template."""
        if doc.is_template_source:
            label = f"{kind}:{doc.id}"
            try:
                template = self._env.from_string(doc.content)
            except jinja2.TemplateError as exc:
                msg = f"Failed to compile {label}: {exc}"
                raise TemplateError(msg) from exc
            return self.render_with_layout(template, data, label=label)
        template, label = self.resolve_template(kind, doc.metadata)
        return self.render_with_layout(template, data, label=label)

    # ------------------------------------------------------------------
    # Per-kind entry points
    # ------------------------------------------------------------------

    def site_data(self) -> dict[str, Any]:
        """Values shared by every render."""
        config = self._config
        return {
            "site_name": config.site_name,
            "base_url": config.base_url.rstrip("/"),
            "site": {
                "name": config.site_name,
                "base_url": config.base_url.rstrip("/"),
                "description": config.description,
                "author": config.author,
            },
        }

    def render_post(
        self,
        post: Post,
        posts: list[Post],
        pages: list[Page],
        datasource: dict[str, Any] | None = None,
    ) -> str:
        data = {
            **self.site_data(),
            "post": post,
            "posts": posts,
            "pages": pages,
            "title": post.title,
            "description": post.description,
            "layout": post.metadata.get("layout", DEFAULT_LAYOUT_NAME),
            "datasource": datasource or {},
        }
        return self.render_document("post", post, data)

    def render_page(
        self,
        page: Page,
        posts: list[Post],
        pages: list[Page],
        datasource: dict[str, Any] | None = None,
    ) -> str:
        data = {
            **self.site_data(),
            "page": page,
            "posts": posts,
            "pages": pages,
            "title": page.title,
            "description": page.metadata.get("description") or self._config.description,
            "layout": page.metadata.get("layout", DEFAULT_LAYOUT_NAME),
            "datasource": datasource or {},
        }
        return self.render_document("page", page, data)

    def render_home(
        self,
        posts: list[Post],
        pages: list[Page],
        datasource: dict[str, Any] | None = None,
    ) -> str:
        data = {
            **self.site_data(),
            "posts": posts,
            "pages": pages,
            "title": "",
            "description": self._config.description,
            "featured_page": next((p for p in pages if p.path), None),
            "layout": DEFAULT_LAYOUT_NAME,
            "datasource": datasource or {},
        }
        template, label = self.resolve_template("home")
        return self.render_with_layout(template, data, label=label)

    def render_posts_index(
        self,
        posts: list[Post],
        pages: list[Page],
        datasource: dict[str, Any] | None = None,
        filter_tags: str | None = None,
    ) -> str:
        """Render the post listing, optionally restricted to comma-separated tags."""
        selected = posts
        if filter_tags:
            wanted = {t.strip() for t in filter_tags.split(",") if t.strip()}
            selected = [p for p in posts if wanted.intersection(p.tags)]
        data = {
            **self.site_data(),
            "posts": selected,
            "total": len(selected),
            "filter_tags": filter_tags,
            "pages": pages,
            "title": "All Posts",
            "description": "Browse all blog posts",
            "layout": DEFAULT_LAYOUT_NAME,
            "datasource": datasource or {},
        }
        template, label = self.resolve_template("posts")
        return self.render_with_layout(template, data, label=label)
