from __future__ import annotations

from urllib.parse import urlencode

from markupsafe import Markup, escape

from progressbar.core.config import settings


def url(path: str, params: dict[str, object] | None = None) -> str:
    base = f"{(settings.wwwroot or '').rstrip('/')}{path}"
    params = {k: v for k, v in (params or {}).items() if v is not None}
    if params:
        return f"{base}?{urlencode(params)}"
    return base


def tag(name: str, content: str | Markup, attributes: dict[str, object] | None = None) -> Markup:
    attrs = "".join(f' {k}="{escape(v)}"' for k, v in (attributes or {}).items() if v is not None)
    return Markup(f"<{name}{attrs}>{escape(content)}</{name}>")


def link(href: str, content: str | Markup) -> Markup:
    return tag("a", content, {"href": href})


def single_button(
    path: str,
    params: dict[str, object],
    label: str,
    method: str = "get",
    *,
    css_class: str = "singlebutton",
) -> Markup:
    """A form with one submit button; query params travel as hidden inputs."""
    inputs = Markup("").join(
        Markup('<input type="hidden" name="{}" value="{}">').format(k, v) for k, v in params.items() if v is not None
    )
    button = Markup('<button type="submit">{}</button>').format(label)
    form = Markup('<form method="{}" action="{}">{}{}</form>').format(method, url(path), inputs, button)
    return tag("div", form, {"class": css_class})
