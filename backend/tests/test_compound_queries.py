"""Queries that combine three or more attribute families."""

import pytest

from compound_queries import EFFICIENCY_RECOMMENDATIONS, find_tool_term
from models import ResponseType
from nl_engine import evaluate_query


def chart(result):
    return result.model_dump(by_alias=True)["response"]["metadata"]["chartData"]


class TestKnownCombinations:
    def test_zone_low_efficiency_battery(self, snapshot):
        result = evaluate_query("battery status of robots in zone c with efficiency below 70%", snapshot)
        assert result.message == (
            "In Zone C, 2 AMRs have efficiency below 70%. Their battery levels range from 15% to 40%."
        )
        assert chart(result) == {"AMR 05": 15, "AMR 06": 40}

    def test_zone_low_efficiency_battery_default_threshold(self, snapshot):
        result = evaluate_query("Compare battery and efficiency for AMR 1 and Zone A maintenance", snapshot)
        assert result.message == "There are no AMRs in Zone A with efficiency below 70%."
        assert result.response.data == []

    def test_zone_low_efficiency_battery_unknown_zone(self, snapshot):
        result = evaluate_query("battery status and efficiency in zone d", snapshot)
        assert result.response.type == ResponseType.ERROR
        assert result.response.title == "Zone Not Found"

    def test_tool_low_battery(self, snapshot):
        result = evaluate_query("which forklift tool robots have battery below 50% and what is their status", snapshot)
        assert result.message == "1 AMRs are using the forklift tool and have battery levels below 50%: AMR 05 (15%)."
        assert result.response.title == "Forklift Tool Users - Low Battery"

    def test_tool_low_battery_defaults_to_forklift(self, snapshot):
        result = evaluate_query("tool battery status below 10%", snapshot)
        assert result.message == "No AMRs with the forklift tool have battery levels below 10%."

    def test_zone_efficiency_comparison_for_one_tool(self, snapshot):
        result = evaluate_query("compare efficiency of gripper tool robots in zone b versus other zones", snapshot)
        assert result.response.type == ResponseType.COMPARISON
        assert chart(result) == {"Zone A": 0, "Zone B": 88, "Zone C": 0}
        assert result.message.splitlines()[0] == "Zone efficiency comparison for AMRs using gripper tools:"
        assert "- Zone B: 88% efficiency (1 AMRs using gripper tools)" in result.message


class TestComprehensiveAnalysis:
    def test_warehouse_wide(self, snapshot):
        result = evaluate_query("battery maintenance and efficiency issues across the warehouse", snapshot)
        sections = result.model_dump(by_alias=True)["response"]["metadata"]["secondaryData"]
        assert result.response.title == "Comprehensive Analysis"
        assert result.response.type == ResponseType.OVERVIEW
        assert sections[0] == "Based on your complex query, here's a comprehensive analysis:"
        assert "High Priority Zones: Zone A" in sections
        assert "Critical Battery Levels:\n- AMR 02: 25% battery in Zone A\n- AMR 05: 15% battery in Zone C" in sections
        assert "Robots in Maintenance:\n- AMR 05 in Zone C" in sections
        assert sections[-1].splitlines()[1:] == [f"- {line}" for line in EFFICIENCY_RECOMMENDATIONS]

    def test_single_robot(self, snapshot):
        result = evaluate_query("battery maintenance and status of AMR 4", snapshot)
        assert result.response.title == "AMR 04 Analysis"
        assert result.response.type == ResponseType.MULTI_ROBOT
        assert (
            "AMR 04 is an idle robot in Zone B with 95% battery.\n"
            "It's using a Tote Carrier tool and currently not assigned any tasks.\n"
            "This robot is operating at 82% efficiency."
        ) in result.message

    def test_unknown_robot(self, snapshot):
        result = evaluate_query("battery maintenance and status of AMR 42", snapshot)
        assert result.response.title == "Robot Not Found"

    def test_single_zone(self, snapshot):
        result = evaluate_query("priority traffic and status of zone b", snapshot)
        assert result.response.title == "Zone B Analysis"
        assert "Zone B is a medium priority zone with 2 AMRs and 4 pending tasks." in result.message
        assert "- AMR 03: active, 60% battery, using Gripper Arm tool" in result.message
        # No efficiency family, so no recommendations section
        assert "Efficiency Recommendations" not in result.message


@pytest.mark.parametrize(
    "query, term",
    [
        ("forklift robots", "forklift"),
        ("robots with a gripper arm", "gripper"),
        ("platform lift units", "lift"),
        ("sound the alarm", None),
    ],
)
def test_find_tool_term(query, term):
    assert find_tool_term(query) == term
