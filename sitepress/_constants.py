"""Common literal values used across sitepress.

These constants keep filenames and directory names centralized so layouts,
the asset pipeline, the builder, and tests can import the same values without
drifting. Intended for internal use within the sitepress package.

Examples
--------
>>> from sitepress import _constants
>>> _constants.LAYOUT_DEFAULT_FILENAME
'_layout.jinja'
>>> _constants.ASSETS_DIR_NAME
'__assets'
"""

LAYOUT_DEFAULT_FILENAME = "_layout.jinja"
LAYOUT_PREFIX = "_layout"
LAYOUT_SUFFIX = ".jinja"
DEFAULT_LAYOUT_VARIANT = "default"
DOCUMENT_TEMPLATE_OVERRIDE = "_html.jinja"
DOCUMENT_TEMPLATE = "document.jinja"
ERROR_PAGE_TEMPLATE = "error_page.jinja"

CONTENT_SUFFIXES = (".md", ".jinja")
ASSETS_DIR_NAME = "__assets"
HEADER_SECTION = "header"
FINGERPRINT_LENGTH = 8
WATCHER_DEBOUNCE_SECONDS = 0.1
CODE_STYLESHEET = "codehilite.css"
SITEMAP_TEMPLATE = "sitemap.xml.jinja"
