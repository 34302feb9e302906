"""Unit tests for tree rendering and the engine registry.

Tests cover:
- render_tree on a full component for each engine
- Header comments, pretty printing and output filenames
- Inheritance via meta.extends and per-render warning isolation
- HTML attributes, self-closing tags and unwrapped elements
- get_engine / available_engines / register_engine
"""

from __future__ import annotations

import dataclasses

import pytest

from ui8gen.config import TemplatePluginConfig
from ui8gen.template import (
    TemplateEngineKind,
    available_engines,
    get_engine,
    register_engine,
    render_element,
    render_tree,
)
from ui8gen.template import engine as engine_module


# ---------------------------------------------------------------------------
# render_tree
# ---------------------------------------------------------------------------


class TestRenderTree:
    @pytest.mark.unit
    def test_liquid_product_card(self, product_card_tree):
        result = render_tree(get_engine("liquid"), product_card_tree)

        assert result.filename == "product-card.liquid"
        assert result.content == (
            '<section class="card card--product">'
            '<h2>{{ title | default: "Untitled" }}</h2>'
            "<ul>{% for product in products %}\n<li>{{ product.price | money }}</li>\n{% endfor %}</ul>"
            "{% if user and not user.banned %}\n<p>Welcome back</p>\n{% endif %}"
            "{% include 'partials/footer.liquid', year: site.year %}"
            "</section>\n"
        )
        assert result.variables == ["title", "products", "user"]
        assert result.dependencies == ["partials/footer"]
        assert result.warnings == []

    @pytest.mark.unit
    def test_handlebars_product_card(self, product_card_tree):
        engine = get_engine("handlebars")
        result = render_tree(engine, product_card_tree)

        assert result.filename == "product-card.hbs"
        assert "{{#each products as |product|}}" in result.content
        assert "{{formatCurrency product.price}}" in result.content
        assert "{{#if (and user (not user.banned))}}" in result.content
        assert "{{> partials/footer year=site.year}}" in result.content
        assert engine.validate(result.content).valid

    @pytest.mark.unit
    def test_jinja_product_card_parses(self, product_card_tree):
        engine = get_engine("jinja")
        result = render_tree(engine, product_card_tree)

        assert result.filename == "product-card.jinja"
        assert "{% with year = site.year %}{% include 'partials/footer.jinja' %}{% endwith %}" in result.content
        assert engine.validate(result.content).valid

    @pytest.mark.unit
    def test_liquid_output_validates(self, product_card_tree):
        engine = get_engine("liquid")
        assert engine.validate(render_tree(engine, product_card_tree).content).valid

    @pytest.mark.unit
    def test_prepend_comment_without_pretty_print(self):
        tree = {"type": "root", "meta": {"component_name": "Hero"}, "children": [{"type": "text", "value": " hi "}]}
        options = TemplatePluginConfig(prepend_comment="Generated by ui8gen", pretty_print=False)

        result = render_tree(get_engine("jinja"), tree, options)

        assert result.content == "{# Generated by ui8gen #}\n hi "

    @pytest.mark.unit
    def test_meta_extends_prepended(self):
        tree = {"type": "root", "meta": {"component_name": "Page", "extends": "layouts/base"}, "children": []}
        result = render_tree(get_engine("jinja"), tree)
        assert result.content == "{% extends 'layouts/base.jinja' %}\n"

    @pytest.mark.unit
    def test_warnings_are_isolated_per_render(self, recording_logger):
        engine = get_engine("liquid")
        with_extends = {"type": "root", "meta": {"extends": "base"}, "children": []}
        plain = {"type": "root", "children": [{"type": "text", "value": "x"}]}

        first = render_tree(engine, with_extends, logger=recording_logger)
        second = render_tree(engine, plain, logger=recording_logger)

        assert len(first.warnings) == 1
        assert "base" in first.content
        assert second.warnings == []
        assert len(recording_logger.messages("warn")) == 1
        assert recording_logger.messages("warn")[0].startswith("[liquid]")

    @pytest.mark.unit
    def test_default_filename(self):
        result = render_tree(get_engine("liquid"), {"type": "root", "children": []})
        assert result.filename == "template.liquid"


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


class TestRenderElement:
    @pytest.mark.unit
    def test_self_closing_with_expression_attribute(self):
        element = {
            "type": "element",
            "tag_name": "img",
            "properties": {"src": "/logo.png", "alt": {"__expression": "product.name"}},
        }
        assert render_element(get_engine("liquid"), element) == (
            '<img src="/logo.png" alt="{{ product.name }}" />'
        )

    @pytest.mark.unit
    def test_boolean_and_style_attributes(self):
        element = {
            "type": "element",
            "tag_name": "button",
            "properties": {"disabled": True, "hidden": False, "style": {"fontSize": "12px"}},
            "children": [{"type": "text", "value": "Go"}],
        }
        assert render_element(get_engine("liquid"), element) == (
            '<button disabled style="font-size: 12px">Go</button>'
        )

    @pytest.mark.unit
    def test_attribute_values_escaped(self):
        element = {"type": "element", "tag_name": "a", "properties": {"title": 'say "hi" & go'}}
        assert render_element(get_engine("liquid"), element) == (
            '<a title="say &quot;hi&quot; &amp; go"></a>'
        )

    @pytest.mark.unit
    def test_unwrap_renders_children_only(self):
        element = {
            "type": "element",
            "tag_name": "div",
            "annotations": {"unwrap": True, "condition": {"expression": "open"}},
            "children": [{"type": "text", "value": "body"}],
        }
        assert render_element(get_engine("liquid"), element) == "{% if open %}\nbody\n{% endif %}"

    @pytest.mark.unit
    def test_comment_nodes(self):
        element = {"type": "element", "tag_name": "div", "children": [{"type": "comment", "value": "todo"}]}
        assert render_element(get_engine("handlebars"), element) == "<div>{{!-- todo --}}</div>"

    @pytest.mark.unit
    def test_slot_wraps_element_markup(self):
        element = {
            "type": "element",
            "tag_name": "header",
            "annotations": {"slot": {"name": "header"}, "unwrap": True},
            "children": [{"type": "text", "value": "Default"}],
        }
        assert render_element(get_engine("jinja"), element) == (
            "{% block header %}Default{% endblock %}"
        )

    @pytest.mark.unit
    def test_include_with_children_in_handlebars(self):
        element = {
            "type": "element",
            "tag_name": "div",
            "annotations": {"include": {"partial": "layouts/box"}},
            "children": [{"type": "text", "value": "inner"}],
        }
        assert render_element(get_engine("handlebars"), element) == (
            "{{#> layouts/box}}inner{{/layouts/box}}"
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestEngineRegistry:
    @pytest.mark.unit
    def test_available_engines(self):
        assert available_engines() == ["liquid", "handlebars", "jinja"]

    @pytest.mark.unit
    def test_get_engine_by_kind_or_name(self):
        assert get_engine(TemplateEngineKind.JINJA).file_extension == ".jinja"
        assert get_engine("Handlebars").file_extension == ".hbs"

    @pytest.mark.unit
    def test_unknown_engine(self):
        with pytest.raises(ValueError, match="Unknown template engine"):
            get_engine("mustache")

    @pytest.mark.unit
    def test_engines_are_immutable(self):
        engine = get_engine("liquid")
        with pytest.raises(dataclasses.FrozenInstanceError):
            engine.name = "other"

    @pytest.mark.unit
    def test_register_engine_replaces_factory(self, monkeypatch):
        monkeypatch.setattr(engine_module, "_FACTORIES", dict(engine_module._FACTORIES))
        base = get_engine("liquid")
        register_engine("liquid", lambda filter_mappings=None: dataclasses.replace(base, name="custom"))
        assert get_engine("liquid").name == "custom"

    @pytest.mark.unit
    def test_missing_factory(self, monkeypatch):
        monkeypatch.setattr(engine_module, "_FACTORIES", {})
        with pytest.raises(ValueError, match="No template engine registered"):
            get_engine("liquid")
