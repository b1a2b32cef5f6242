import pytest

from barclamp_mgmt.navigation import (
    NAVIGATION_FOOTER,
    NAVIGATION_HEADER,
    MenuItem,
    NavigationBuilder,
    PathLink,
    RouteLink,
    UrlLink,
    render_menu,
    render_navigation,
    stringify_options,
)
from barclamp_mgmt.utils import DescriptorError


NETWORK = """\
barclamp:
  name: network
crowbar:
  order: 10
nav:
  cluster:
    order: 20
    route: nodes_path
    network:
      order: 10
      route: network_path
"""

DATABASE = """\
barclamp:
  name: database
crowbar:
  order: 5
nav:
  cluster:
    database:
      order: 5
      route: database_path
"""


@pytest.fixture
def builder(config):
    return NavigationBuilder(config)


def rendered_lines(builder):
    return render_menu(builder.build_menu(builder.merge_navigation()))


def test_siblings_render_in_ascending_order(builder, write_descriptor):
    write_descriptor("network.yml", NETWORK)
    write_descriptor("database.yml", DATABASE)
    assert rendered_lines(builder) == [
        '    level1.item :cluster, t("nav.cluster.title"), nodes_path do |level2|',
        '      level2.item :database, t("nav.cluster.database"), database_path',
        '      level2.item :network, t("nav.cluster.network"), network_path',
        "    end",
    ]


def test_order_wins_over_file_order(builder, write_descriptor):
    write_descriptor("a-network.yml", NETWORK)
    write_descriptor("b-database.yml", DATABASE)
    lines = rendered_lines(builder)
    assert lines[1].strip().startswith("level2.item :database")
    assert lines[2].strip().startswith("level2.item :network")


def test_ties_keep_merge_order(builder, write_descriptor):
    write_descriptor("a.yml", "barclamp: {name: a}\nnav: {zeta: {url: 'http://z'}}\n")
    write_descriptor("b.yml", "barclamp: {name: b}\nnav: {alpha: {url: 'http://a'}}\n")
    keys = [item.key for item in builder.build_menu(builder.merge_navigation())]
    assert keys == ["zeta", "alpha"]


def test_later_descriptor_wins_scalar_conflicts(builder, write_descriptor):
    write_descriptor("a.yml", "barclamp: {name: a}\nnav: {help: {order: 1, path: '/old'}}\n")
    write_descriptor("b.yml", "barclamp: {name: b}\nnav: {help: {path: '/new'}}\n")
    (item,) = builder.build_menu(builder.merge_navigation())
    assert item.link == PathLink("/new")
    assert item.order == 1


def test_descriptors_without_nav_are_skipped(builder, write_descriptor):
    write_descriptor("plain.yml", "barclamp: {name: plain}\n")
    assert builder.merge_navigation() == {}


def test_unordered_items_go_last(builder):
    items = builder.build_menu(
        {"late": {"url": "/late"}, "early": {"order": 999, "url": "/early"}}
    )
    assert [item.key for item in items] == ["early", "late"]
    assert items[1].order == 1000


def test_string_order_is_numeric(builder):
    items = builder.build_menu({"b": {"order": "20"}, "a": {"order": "3"}})
    assert [item.key for item in items] == ["a", "b"]


def test_invalid_order_warns(builder):
    items = builder.build_menu({"b": {"order": "soon"}, "a": {"order": 1}})
    assert [item.key for item in items] == ["a", "b"]
    assert any("soon" in warning for warning in builder.logger.warnings)


def test_infinite_order_warns(builder):
    items = builder.build_menu(
        {"b": {"order": float("inf")}, "c": {"order": float("-inf")}, "a": {"order": 1}}
    )
    assert [(item.key, item.order) for item in items] == [("a", 1), ("b", 1000), ("c", 1000)]
    assert any("inf" in warning for warning in builder.logger.warnings)


def test_link_forms(builder):
    items = builder.build_menu(
        {
            "dashboard": {
                "order": 1,
                "route": "barclamp_modules_path",
                "params": {"id": "network"},
            },
            "docs": {"order": 2, "path": "/docs", "html": {"target": "_blank"}},
            "upstream": {"order": 3, "url": "https://example.com/"},
        }
    )
    assert items[0].link == RouteLink("barclamp_modules_path", {"id": "network"})
    assert items[1].link == PathLink("/docs")
    assert items[1].options == {"link": {"target": "_blank"}}
    assert items[2].link == UrlLink("https://example.com/")
    assert render_menu(items) == [
        '    level1.item :dashboard, t("nav.dashboard"), barclamp_modules_path(id: "network")',
        '    level1.item :docs, t("nav.docs"), "/docs", link: { target: "_blank" }',
        '    level1.item :upstream, t("nav.upstream"), "https://example.com/"',
    ]


def test_route_takes_precedence_over_path(builder):
    (item,) = builder.build_menu({"x": {"route": "x_path", "path": "/x"}})
    assert item.link == RouteLink("x_path", None)


def test_parent_keeps_its_own_link(builder):
    (item,) = builder.build_menu(
        {"nodes": {"route": "nodes_path", "list": {"route": "nodes_list_path"}}}
    )
    assert item.link == RouteLink("nodes_path", None)
    assert item.label_key == "nav.nodes.title"
    assert item.children[0].label_key == "nav.nodes.list"
    assert item.children[0].path == ("nodes", "list")


def test_item_without_link_renders_nil(builder):
    (item,) = builder.build_menu({"utils": {"logs": {"path": "/logs"}}})
    assert item.link is None
    assert render_menu([item])[0] == '    level1.item :utils, t("nav.utils.title"), nil do |level2|'


def test_non_mapping_child_is_skipped(builder):
    (item,) = builder.build_menu({"help": {"path": "/help", "bogus": 3}})
    assert item.children == []
    assert any("nav.help.bogus" in warning for warning in builder.logger.warnings)


def test_options_and_procs():
    options = {
        "if": "current_user.admin?",
        "unless": "Rails.env.test?",
        "html": {"class": "dropdown", "data": {"toggle": "x"}},
        "highlights_on": "/nodes",
        "count": 3,
        "flag": True,
    }
    assert stringify_options(options, procs=True) == (
        "if: proc { current_user.admin? }, "
        "unless: proc { Rails.env.test? }, "
        'html: { class: "dropdown", data: { toggle: "x" } }, '
        'highlights_on: "/nodes", '
        "count: 3, "
        "flag: true"
    )
    assert stringify_options({"if": "x"}) == 'if: "x"'


def test_options_are_rendered_on_items():
    item = MenuItem(
        key="admin",
        path=("admin",),
        link=RouteLink("admin_path"),
        options={"if": "current_user.admin?"},
    )
    assert render_menu([item]) == [
        '    level1.item :admin, t("nav.admin"), admin_path, if: proc { current_user.admin? }'
    ]


def test_nested_indentation():
    leaf = MenuItem(key="c", path=("a", "b", "c"), link=PathLink("/c"))
    mid = MenuItem(key="b", path=("a", "b"), link=PathLink("/b"), children=[leaf])
    top = MenuItem(key="a", path=("a",), link=PathLink("/a"), children=[mid])
    assert render_menu([top]) == [
        '    level1.item :a, t("nav.a.title"), "/a" do |level2|',
        '      level2.item :b, t("nav.a.b.title"), "/b" do |level3|',
        '        level3.item :c, t("nav.a.b.c"), "/c"',
        "      end",
        "    end",
    ]


def test_scaffold_is_preserved():
    text = render_navigation([MenuItem(key="a", path=("a",), link=UrlLink("/a"))])
    assert text.startswith(NAVIGATION_HEADER)
    assert text.endswith('\n    level1.item :a, t("nav.a"), "/a"\n' + NAVIGATION_FOOTER)
    assert '# Copyright 2013-2014, SUSE LINUX Products GmbH\n' in text
    assert '    level1.dom_class = "nav navbar-nav"\n' in text


def test_empty_navigation():
    assert render_navigation([]) == NAVIGATION_HEADER + "\n" + NAVIGATION_FOOTER


def test_write_navigation_is_idempotent(config, builder, write_descriptor):
    write_descriptor("network.yml", NETWORK)
    write_descriptor("database.yml", DATABASE)
    path = builder.write_navigation()
    assert path == config.crowbar_path / "config" / "navigation.rb"
    first = path.read_bytes()
    NavigationBuilder(config).write_navigation()
    assert path.read_bytes() == first


def test_bad_descriptor_aborts_navigation(config, builder, write_descriptor):
    write_descriptor("broken.yml", "nav: {a: [\n")
    with pytest.raises(DescriptorError):
        builder.write_navigation()
    assert not config.navigation_path.exists()
