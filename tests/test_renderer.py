"""
Template renderer and filter tests.
"""

import pytest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from services.resolutions import ValueStore, register_filter, render
from services.resolutions.filters import FILTERS, filter_long_date, filter_money, filter_pct
from services.resolutions.renderer import (
    Each,
    ExpressionError,
    If,
    Includes,
    Ternary,
    Text,
    Var,
    format_value,
    parse_expression,
    parse_template,
)


class TestVariables:

    def test_simple_substitution(self):
        assert render("Hello {{name}}", ValueStore({'name': 'Tom'})) == "Hello Tom"

    def test_missing_value_renders_empty(self):
        assert render("Hello {{name}}", ValueStore()) == "Hello "

    def test_whitespace_inside_braces(self):
        assert render("{{  name  }}", ValueStore({'name': 'Tom'})) == "Tom"

    def test_nested_path(self):
        store = ValueStore({'fromEntity': {'legalName': 'Snowbird Holdings LLC'}})
        assert render("{{fromEntity.legalName}}", store) == "Snowbird Holdings LLC"

    def test_type_mismatch_renders_empty(self):
        assert render("[{{name.first}}]", ValueStore({'name': 'Tom'})) == "[]"

    def test_template_metadata_renders_as_mapping(self):
        store = ValueStore({'typeTag': 'USER'}, template_meta={'typeTag': 'DIST'})
        assert render("RES-{{$template.typeTag}}", store) == "RES-"
        assert render("{{#if $template}}Y{{/if}}", store) == ""

    def test_substituted_values_are_not_reparsed(self):
        store = ValueStore({'a': '{{b}}', 'b': 'nope'})
        assert render("{{a}}", store) == "{{b}}"

    def test_unparseable_token_renders_empty(self):
        assert render("x{{a = b}}y", ValueStore({'a': 1})) == "xy"

    def test_text_without_tokens(self):
        assert render("plain text", ValueStore()) == "plain text"


class TestFormatting:

    @pytest.mark.parametrize('value, expected', [
        ('abc', 'abc'),
        (True, 'true'),
        (False, 'false'),
        (250000, '250000'),
        (250000.0, '250000'),
        (2.5, '2.5'),
        (['a', 'b'], 'a, b'),
        ({'id': 'X'}, ''),
        (None, ''),
    ])
    def test_format_value(self, value, expected):
        assert format_value(value) == expected


class TestFilters:

    def test_money(self):
        assert render("{{amount | money}}", ValueStore({'amount': 250000})) == "$250,000.00"
        assert filter_money("1234.5", "1234.5") == "$1,234.50"
        assert filter_money(-20, "-20") == "-$20.00"

    def test_money_unparseable_unchanged(self):
        assert render("{{amount | money}}", ValueStore({'amount': 'TBD'})) == "TBD"

    @pytest.mark.parametrize('text', ['nan', 'inf', '-Infinity', '1_000'])
    def test_non_finite_and_underscored_numbers_unchanged(self, text):
        assert filter_money(text, text) == text
        assert filter_pct(text, text) == text

    def test_long_date(self):
        assert render("{{d | longDate}}", ValueStore({'d': '2025-10-02'})) == "October 2, 2025"
        assert filter_long_date('garbage', 'garbage') == 'garbage'

    def test_pct(self):
        assert render("{{p | pct}}", ValueStore({'p': 6.5})) == "6.5%"
        assert filter_pct(6, '6') == "6%"
        assert filter_pct(33.333, '33.333') == "33.33%"
        assert filter_pct('n/a', 'n/a') == "n/a"

    def test_unknown_filter_leaves_text(self):
        assert render("{{name | shout}}", ValueStore({'name': 'Tom'})) == "Tom"

    def test_filter_on_missing_value_renders_empty(self):
        assert render("[{{amount | money}}]", ValueStore()) == "[]"

    def test_register_filter(self):
        register_filter('upper', lambda value, text: text.upper())
        try:
            assert render("{{name | upper}}", ValueStore({'name': 'Tom'})) == "TOM"
        finally:
            FILTERS.pop('upper', None)


class TestTernary:

    TEMPLATE = "{{officerTitle == 'Other' ? officerTitleOther : officerTitle}}"

    def test_true_branch(self):
        store = ValueStore({'officerTitle': 'Other', 'officerTitleOther': 'Chief Pilot'})
        assert render(self.TEMPLATE, store) == "Chief Pilot"

    def test_false_branch(self):
        store = ValueStore({'officerTitle': 'Manager', 'officerTitleOther': 'Chief Pilot'})
        assert render(self.TEMPLATE, store) == "Manager"

    def test_unresolved_branch_falls_back_to_path_name(self):
        store = ValueStore({'officerTitle': 'Other'})
        assert render(self.TEMPLATE, store) == "officerTitleOther"

    def test_quoted_literal_branch(self):
        store = ValueStore({'method': 'Wire'})
        assert render("{{method == 'Wire' ? 'wire transfer' : method}}", store) == "wire transfer"

    def test_delimiters_inside_literals(self):
        store = ValueStore({'q': 'a?b:c', 'yes': 'Y', 'no': 'N'})
        assert render("{{q == 'a?b:c' ? yes : no}}", store) == "Y"

    def test_bool_lhs_compares_as_text(self):
        store = ValueStore({'flag': True, 'a': 'A', 'b': 'B'})
        assert render("{{flag == 'true' ? a : b}}", store) == "A"

    def test_parse(self):
        node = parse_expression("a == 'x' ? b : c")
        assert isinstance(node, Ternary)
        assert (node.lhs, node.literal, node.if_true.value, node.if_false.value) == ('a', 'x', 'b', 'c')

    def test_malformed_ternary_rejected(self):
        with pytest.raises(ExpressionError):
            parse_expression("a ? b : c")


class TestIfBlocks:

    TEMPLATE = "{{#if active}}YES{{/if}}{{#if active}}NO{{/if}}"

    def test_false_removes_both_blocks(self):
        assert render(self.TEMPLATE, ValueStore({'active': False})) == ""

    def test_true_keeps_both_bodies(self):
        assert render(self.TEMPLATE, ValueStore({'active': True})) == "YESNO"

    @pytest.mark.parametrize('value, expected', [
        ('x', 'Y'),
        ('', ''),
        (1, 'Y'),
        (0, ''),
        (0.0, ''),
        (None, ''),
        (['a'], ''),
    ])
    def test_truthiness(self, value, expected):
        assert render("{{#if v}}Y{{/if}}", ValueStore({'v': value})) == expected

    def test_absent_is_false(self):
        assert render("{{#if v}}Y{{/if}}", ValueStore()) == ""

    def test_includes(self):
        template = "{{#if scopes.includes('banking')}}BANK{{/if}}"
        assert render(template, ValueStore({'scopes': ['banking']})) == "BANK"
        assert render(template, ValueStore({'scopes': ['contracts']})) == ""
        assert render(template, ValueStore()) == ""

    def test_equality_condition(self):
        template = "{{#if method == 'Wire'}}W{{/if}}"
        assert render(template, ValueStore({'method': 'Wire'})) == "W"
        assert render(template, ValueStore({'method': 'ACH'})) == ""

    def test_body_variables_substituted(self):
        store = ValueStore({'show': True, 'name': 'Tom'})
        assert render("{{#if show}}Hi {{name}}{{/if}}!", store) == "Hi Tom!"

    def test_multiline_body(self):
        store = ValueStore({'show': True})
        assert render("a\n{{#if show}}\nb\n{{/if}}\nc", store) == "a\n\nb\n\nc"

    def test_nested_blocks(self):
        store = ValueStore({'a': True, 'b': False})
        assert render("{{#if a}}A{{#if b}}B{{/if}}C{{/if}}", store) == "AC"

    def test_unclosed_if_keeps_content(self):
        assert render("x{{#if a}}y", ValueStore()) == "xy"

    def test_stray_close_renders_empty(self):
        assert render("x{{/if}}y", ValueStore()) == "xy"


class TestEachBlocks:

    TEMPLATE = "{{#each items}}[{{this.name}}]{{/each}}"

    def test_iterates_in_order(self):
        store = ValueStore({'items': [{'name': 'A'}, {'name': 'B'}]})
        assert render(self.TEMPLATE, store) == "[A][B]"

    def test_empty_array(self):
        assert render(self.TEMPLATE, ValueStore({'items': []})) == ""

    def test_missing_array(self):
        assert render(self.TEMPLATE, ValueStore()) == ""

    def test_non_array(self):
        assert render(self.TEMPLATE, ValueStore({'items': 'A'})) == ""

    def test_outer_scope_visible(self):
        store = ValueStore({'entity': 'SHOLD', 'items': [{'name': 'A'}]})
        assert render("{{#each items}}{{this.name}}@{{entity}}{{/each}}", store) == "A@SHOLD"

    def test_filters_and_ternary_inside_each(self):
        store = ValueStore({'items': [
            {'amount': 10, 'kind': 'cash'},
            {'amount': 2.5, 'kind': 'stock'},
        ]})
        template = "{{#each items}}{{this.amount | money}} {{this.kind == 'cash' ? 'C' : 'S'}};{{/each}}"
        assert render(template, store) == "$10.00 C;$2.50 S;"

    def test_if_inside_each_sees_element(self):
        store = ValueStore({'items': [{'name': 'A', 'lead': True}, {'name': 'B', 'lead': False}]})
        template = "{{#each items}}{{this.name}}{{#if this.lead}}*{{/if}} {{/each}}"
        assert render(template, store) == "A* B "

    def test_each_does_not_leak_this(self):
        store = ValueStore({'items': [{'name': 'A'}]})
        assert render("{{#each items}}{{/each}}[{{this.name}}]", store) == "[]"
        assert 'this' not in store

    def test_scalar_elements(self):
        store = ValueStore({'tags': ['x', 'y']})
        assert render("{{#each tags}}<{{this}}>{{/each}}", store) == "<x><y>"


class TestParseTemplate:

    def test_node_tree(self):
        nodes = parse_template("Hi {{name | money}}{{#if a}}{{#each b}}x{{/each}}{{/if}}")
        assert isinstance(nodes[0], Text)
        assert isinstance(nodes[1], Var) and nodes[1].filter_name == 'money'
        assert isinstance(nodes[2], If)
        assert isinstance(nodes[2].children[0], Each)

    def test_includes_condition(self):
        nodes = parse_template("{{#if scopes.includes(\"banking\")}}x{{/if}}")
        condition = nodes[0].condition
        assert isinstance(condition, Includes)
        assert (condition.path, condition.needle) == ('scopes', 'banking')
