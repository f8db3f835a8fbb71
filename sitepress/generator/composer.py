"""Compose one content source into a finished HTML document.

Composition runs in two stages. The page's layout chain wraps the converted
body innermost first, each layout seeing the page metadata, the navigation
projected for this page, and an asset lookup bound to the page. The outer
document template then wraps the result with ``<head>`` metadata. The outer
template is ``_html.jinja`` at the layout root when present, otherwise the
packaged ``document.jinja``.

Rendering holds no state between pages: given the same source, layout chain,
navigation model and asset lookup it returns byte-identical markup.

Example
-------
>>> composer = RenderComposer(environment, context)  # doctest: +SKIP
>>> html = composer.render(source, chain, navigation, assets, hrefs)  # doctest: +SKIP
"""

from __future__ import annotations

import typing as typ

from markupsafe import Markup

from sitepress._constants import (
    CODE_STYLESHEET,
    DOCUMENT_TEMPLATE,
    DOCUMENT_TEMPLATE_OVERRIDE,
)
from sitepress.errors import PipelineError, RenderError
from sitepress.generator.link_rewriter import _build_link_rewriter
from sitepress.generator.renderer import (
    HtmlContentRenderer,
    replace_asset_placeholders,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from jinja2 import Environment

    from sitepress.assets import AssetLookup
    from sitepress.config import BuildContext
    from sitepress.content import ContentSource
    from sitepress.layouts import LayoutChain
    from sitepress.navigation import NavigationModel

THEME_SCRIPT = Markup(
    "(function () {"
    "var stored = null;"
    "try { stored = window.localStorage.getItem('theme'); } catch (e) {}"
    "var dark = window.matchMedia"
    " && window.matchMedia('(prefers-color-scheme: dark)').matches;"
    "var theme = stored || (dark ? 'dark' : 'light');"
    "document.documentElement.setAttribute('data-theme', theme);"
    "})();"
)


class RenderComposer:
    """Render content bodies and wrap them in layouts and the document shell."""

    def __init__(
        self,
        environment: Environment,
        context: BuildContext,
        *,
        renderer: HtmlContentRenderer | None = None,
    ) -> None:
        """Initialize the composer for one build pass.

        Parameters
        ----------
        environment : Environment
            Jinja environment able to load layouts and packaged templates.
        context : BuildContext
            Read-only build configuration (base path and site metadata).
        renderer : HtmlContentRenderer, optional
            Markdown renderer; defaults to one using the ``monokai`` style.
        """
        self.environment = environment
        self.context = context
        self.renderer = renderer or HtmlContentRenderer()
        self.document_template = self._select_document_template()

    def refresh(self) -> None:
        """Re-select the document template after the layout tree changed."""
        self.document_template = self._select_document_template()

    def render(
        self,
        source: ContentSource,
        layout_chain: LayoutChain,
        navigation: NavigationModel,
        assets: AssetLookup,
        hrefs: cabc.Mapping[str, str],
    ) -> str:
        """Convert ``source`` and compose it into a complete HTML document.

        Parameters
        ----------
        source : ContentSource
            Validated content source.
        layout_chain : LayoutChain
            Layouts resolved for the source, innermost first.
        navigation : NavigationModel
            Model shared by every page of the pass.
        assets : AssetLookup
            Asset lookup frozen for the pass.
        hrefs : Mapping[str, str]
            Relative content path to public URL for every page of the pass,
            used to rewrite links between markdown sources.

        Raises
        ------
        AssetNotFoundError
            If the body or a layout references an unknown asset.
        RenderError
            If a layout or templated body fails while rendering.
        """
        body_html = self.render_body(source, navigation, assets, hrefs)
        return self.compose(source, body_html, layout_chain, navigation, assets)

    def render_body(
        self,
        source: ContentSource,
        navigation: NavigationModel,
        assets: AssetLookup,
        hrefs: cabc.Mapping[str, str],
    ) -> str:
        """Convert the body of ``source`` to HTML."""
        asset = assets.bound_to(source.relative_path)
        try:
            if source.is_template:
                template = self.environment.from_string(source.body)
                return template.render(
                    self._page_context(source, navigation, asset)
                )
            text = replace_asset_placeholders(source.body, asset)
            link_extension = _build_link_rewriter(source.relative_path, hrefs)
            return self.renderer.markdown(text, link_extension=link_extension)
        except PipelineError as exc:
            raise exc.with_path(source.relative_path)
        except Exception as exc:  # noqa: BLE001 - template code may raise anything
            msg = f"Failed to render page body: {exc}"
            raise RenderError(msg, path=source.relative_path) from exc

    def compose(
        self,
        source: ContentSource,
        body_html: str,
        layout_chain: LayoutChain,
        navigation: NavigationModel,
        assets: AssetLookup,
    ) -> str:
        """Wrap ``body_html`` with the layout chain, then the document template.

        Returns
        -------
        str
            The final document markup.
        """
        asset = assets.bound_to(source.relative_path)
        page_context = self._page_context(source, navigation, asset)
        article_html = body_html
        current = None
        try:
            for layout in layout_chain:
                current = layout.template_name
                article_html = layout.render(article_html, page_context)
            current = self.document_template
            return self._render_document(source, article_html, assets)
        except PipelineError as exc:
            raise exc.with_path(source.relative_path)
        except Exception as exc:  # noqa: BLE001 - template code may raise anything
            msg = f"Template '{current}' failed: {exc}"
            raise RenderError(msg, path=source.relative_path) from exc

    def _page_context(
        self,
        source: ContentSource,
        navigation: NavigationModel,
        asset: cabc.Callable[[str], str],
    ) -> dict[str, typ.Any]:
        meta = source.frontmatter
        return {
            "title": meta.title,
            "description": meta.description or self.context.site.description,
            "navigation": navigation.for_page(source.href(self.context.base_path)),
            "base_path": self.context.base_path,
            "asset": asset,
            "page": meta.extra,
            "site": self.context.site,
        }

    def _render_document(
        self, source: ContentSource, body_html: str, assets: AssetLookup
    ) -> str:
        site = self.context.site
        meta = source.frontmatter
        asset = assets.bound_to(source.relative_path)
        stylesheets = [asset(name) for name in site.stylesheets]
        if CODE_STYLESHEET in assets and CODE_STYLESHEET not in site.stylesheets:
            stylesheets.append(asset(CODE_STYLESHEET))
        template = self.environment.get_template(self.document_template)
        return template.render(
            page_title=f"{site.site_name} | {meta.title}",
            title=meta.title,
            description=meta.description or site.description,
            canonical_url=site.absolute_url(source.href(self.context.base_path)),
            stylesheets=stylesheets,
            favicon=asset(site.favicon) if site.favicon else None,
            theme_script=THEME_SCRIPT,
            body_html=Markup(body_html),
            base_path=self.context.base_path,
            site=site,
        )

    def _select_document_template(self) -> str:
        if (self.context.layout_dir / DOCUMENT_TEMPLATE_OVERRIDE).is_file():
            return DOCUMENT_TEMPLATE_OVERRIDE
        return DOCUMENT_TEMPLATE


__all__ = ["THEME_SCRIPT", "RenderComposer"]
