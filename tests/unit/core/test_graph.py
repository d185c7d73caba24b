"""Tests for FlowGraph helpers and option tables."""

from convoflow.core.graph import OptionItem, OptionTable
from factories import compile_template, lead_capture_template, menu_template


class TestOptionItem:
    def test_value_defaults_to_label(self):
        """Test an option without value stores its label."""
        assert OptionItem(label="Sales").value == "Sales"

    def test_explicit_value_kept(self):
        """Test an explicit value is kept."""
        assert OptionItem(label="Sales", value="sales").value == "sales"


class TestOptionTable:
    def test_target_for_routed_index(self):
        """Test a routed index returns its target."""
        table = OptionTable(node_id="n", targets=("a", "b"), default_target="d")
        assert table.target_for(1) == "b"

    def test_unrouted_index_uses_default(self):
        """Test an index without dedicated edge falls back to the default."""
        table = OptionTable(node_id="n", targets=("a", None), default_target="d")
        assert table.target_for(1) == "d"

    def test_index_past_table_uses_default(self):
        """Test catalog indices beyond the table use the default target."""
        table = OptionTable(node_id="n", targets=("a",), default_target="d")
        assert table.target_for(5) == "d"

    def test_no_default_returns_none(self):
        """Test missing route and default yields None."""
        table = OptionTable(node_id="n", targets=(None,))
        assert table.target_for(0) is None


class TestFlowGraph:
    def test_next_node_id_follows_successor(self):
        """Test unconditional successor lookup."""
        graph = compile_template(lead_capture_template())
        assert graph.next_node_id("hi") == "ask_name"

    def test_next_node_id_of_last_node_is_none(self):
        """Test a node without outgoing edge has no successor."""
        graph = compile_template(lead_capture_template())
        assert graph.next_node_id("thanks") is None

    def test_option_target(self):
        """Test option routing through the option table."""
        graph = compile_template(menu_template())
        assert graph.option_target("menu", 0) == "sales"
        assert graph.option_target("menu", 1) == "support"

    def test_matches_trigger_whole_phrase_case_insensitive(self):
        """Test trigger matching ignores case and surrounding whitespace."""
        graph = compile_template(menu_template(keywords=["quiero info"]))
        assert graph.matches_trigger("  Quiero   INFO ")
        assert not graph.matches_trigger("quiero info ya")

    def test_default_triggers_when_no_keywords(self):
        """Test a start node without keywords gets the default triggers."""
        graph = compile_template(lead_capture_template())
        assert graph.matches_trigger("hello")
        assert graph.matches_trigger("Hola")

    def test_lead_variables_tagged(self):
        """Test name and phone capture variables are tagged."""
        graph = compile_template(lead_capture_template())
        assert graph.name_variables == frozenset({"name"})
        assert graph.phone_variables == frozenset({"phone"})
        assert graph.is_lead_variable("phone")
        assert not graph.is_lead_variable("area")
