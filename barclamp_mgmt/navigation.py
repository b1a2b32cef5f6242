"""Generation of the framework's menu configuration, config/navigation.rb.

Every descriptor may carry a `nav` fragment.  The fragments are deep merged
in descriptor order into one tree, converted into a list of MenuItem records,
and finally serialized as a SimpleNavigation configuration file.

A tree node is a mapping whose control keys describe the item itself:

    order     position among siblings, default 1000 (last)
    route     named rails route, optionally with `params`
    path      literal path, optionally with an `html` hint for the link
    url       literal URL
    options   extra item options, `if`/`unless` are emitted as procs

and whose remaining keys are child items.  Labels are not stored in the
tree, they are looked up at render time by the framework from the
`nav.<path>` locale keys (`nav.<path>.title` for items with children).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from . import utils
from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .descriptors import DescriptorLoader
from .merge import merge_all, kind_of, ValueKind
from .constants import (
    DEFAULT_NAV_ORDER,
    NAV_ROOT_INDENT,
    NAV_INDENT_STEP,
    NAV_CONTROL_KEYS,
)


NAVIGATION_HEADER = """\
#
# Copyright 2011-2013, Dell
# Copyright 2013-2014, SUSE LINUX Products GmbH
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

SimpleNavigation::Configuration.run do |navigation|
  navigation.renderer = SimpleNavigationRenderers::Bootstrap3
  navigation.consider_item_names_as_safe = true

  navigation.selected_class = "active"
  navigation.active_leaf_class = "leaf"

  navigation.items do |level1|
    level1.dom_class = "nav navbar-nav"
"""

NAVIGATION_FOOTER = """\
  end
end
"""

PROC_OPTIONS = ("if", "unless")


def _given(value: Any) -> bool:
    """Ruby truthiness: only nil and false are unset."""
    return value is not None and value is not False


def stringify_options(options: dict[str, Any], procs: bool = False) -> str:
    """Render `options` as Ruby keyword arguments.

    With `procs`, the `if` and `unless` values are Ruby expressions
    wrapped in procs rather than literals.
    """
    rendered = []
    for key, value in options.items():
        if procs and key in PROC_OPTIONS:
            rendered.append(f"{key}: proc {{ {value} }}")
        elif kind_of(value) is ValueKind.MAPPING:
            rendered.append(f"{key}: {{ {stringify_options(value)} }}")
        else:
            rendered.append(f"{key}: {utils.ruby_inspect(value)}")
    return ", ".join(rendered)


# ------------------------------ menu IR ------------------------------------


@dataclass
class RouteLink:
    route: str
    params: Optional[dict[str, Any]] = None

    def render(self) -> str:
        if _given(self.params):
            return f"{self.route}({stringify_options(self.params)})"
        return str(self.route)


@dataclass
class PathLink:
    path: str

    def render(self) -> str:
        return utils.ruby_inspect(self.path)


@dataclass
class UrlLink:
    url: str

    def render(self) -> str:
        return utils.ruby_inspect(self.url)


Link = Union[RouteLink, PathLink, UrlLink]


@dataclass
class MenuItem:
    """One entry of the rendered menu."""

    key: str
    path: tuple[str, ...]
    order: int = DEFAULT_NAV_ORDER
    link: Optional[Link] = None
    options: dict[str, Any] = field(default_factory=dict)
    children: list["MenuItem"] = field(default_factory=list)

    @property
    def label_key(self) -> str:
        key = "nav." + ".".join(self.path)
        return key + ".title" if self.children else key


# ------------------------------ builder ------------------------------------


class NavigationBuilder(BarclampConfigurable, BarclampLoggable):
    """Merges descriptor nav fragments and renders config/navigation.rb."""

    def __init__(self, config=None):
        super().__init__(config)
        self.loader = DescriptorLoader(self.config)

    def merge_navigation(self) -> dict[str, Any]:
        """Deep merge the nav fragments of all descriptors in load order."""
        self.logger.debug("Generating navigation")
        fragments = []
        for descriptor in self.loader.load_descriptors(self.config.descriptors_dir):
            nav = descriptor.nav
            if nav is None:
                continue
            if kind_of(nav) is not ValueKind.MAPPING:
                self.logger.warning(
                    f"Ignoring nav of {descriptor.path.name}, not a mapping."
                )
                continue
            fragments.append(nav)
        return merge_all(fragments)

    def node_order(self, node: dict[str, Any], path: tuple[str, ...]) -> int:
        order = node.get("order")
        if not _given(order):
            return DEFAULT_NAV_ORDER
        try:
            return int(order)
        except (TypeError, ValueError, OverflowError):
            self.logger.warning(
                f"Invalid order {order!r} for nav.{'.'.join(path)}, using {DEFAULT_NAV_ORDER}."
            )
            return DEFAULT_NAV_ORDER

    def build_menu(
        self, tree: dict[str, Any], breadcrumb: tuple[str, ...] = ()
    ) -> list[MenuItem]:
        """Convert a merged nav tree into MenuItems sorted by order.

        Python's sort is stable so siblings sharing an order keep merge order.
        """
        nodes = []
        for key, node in tree.items():
            path = breadcrumb + (str(key),)
            if kind_of(node) is not ValueKind.MAPPING:
                self.logger.warning(
                    f"Ignoring nav.{'.'.join(path)}, expected a mapping but got {node!r}."
                )
                continue
            nodes.append((self.node_order(node, path), path, node))
        nodes.sort(key=lambda entry: entry[0])
        return [self.build_item(path, node, order) for order, path, node in nodes]

    def build_item(
        self, path: tuple[str, ...], node: dict[str, Any], order: int
    ) -> MenuItem:
        node = dict(node)
        controls = {key: node.pop(key, None) for key in NAV_CONTROL_KEYS}
        url = controls["url"]
        route = controls["route"]
        params = controls["params"]
        if _given(params) and kind_of(params) is not ValueKind.MAPPING:
            self.logger.warning(f"Ignoring params of nav.{'.'.join(path)}, not a mapping.")
            params = None
        link_path = controls["path"]
        html = controls["html"]
        options = dict(controls["options"] or {})

        link: Optional[Link] = None
        if _given(route):
            link = RouteLink(route, params)
        elif _given(link_path):
            if _given(html):
                options["link"] = html
            link = PathLink(link_path)
        elif _given(url):
            link = UrlLink(url)

        return MenuItem(
            key=path[-1],
            path=path,
            order=order,
            link=link,
            options=options,
            children=self.build_menu(node, path) if node else [],
        )

    def write_navigation(self) -> Path:
        """Build and replace config/navigation.rb."""
        items = self.build_menu(self.merge_navigation())
        path = utils.atomic_write(self.config.navigation_path, render_navigation(items))
        self.logger.info(f"Wrote navigation with {len(items)} top level items.")
        return path


# ------------------------------ serializer ---------------------------------


def render_item_head(item: MenuItem, level: int) -> str:
    link = item.link.render() if item.link else "nil"
    options = stringify_options(item.options, procs=True)
    if options:
        options = ", " + options
    return f'level{level}.item :{item.key}, t("{item.label_key}"), {link}{options}'


def render_menu(
    items: list[MenuItem], indent: int = NAV_ROOT_INDENT, level: int = 1
) -> list[str]:
    """Render MenuItems as the indented lines of a SimpleNavigation block."""
    pad = " " * indent
    lines = []
    for item in items:
        head = render_item_head(item, level)
        if not item.children:
            lines.append(pad + head)
        else:
            lines.append(pad + head + f" do |level{level + 1}|")
            lines.extend(
                render_menu(item.children, indent + NAV_INDENT_STEP, level + 1)
            )
            lines.append(pad + "end")
    return lines


def render_navigation(items: list[MenuItem]) -> str:
    """The complete navigation.rb text for `items`."""
    return (
        NAVIGATION_HEADER + "\n".join(render_menu(items)) + "\n" + NAVIGATION_FOOTER
    )
