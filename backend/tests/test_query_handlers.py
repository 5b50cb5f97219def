"""Lookup and analytic answers over the hand-built snapshot."""

import pytest

from models import ResponseType
from nl_engine import evaluate_query


def dump(result):
    return result.model_dump(by_alias=True)


class TestRobotLookup:
    def test_location(self, snapshot):
        result = evaluate_query("Where is AMR 3?", snapshot)
        assert result.message == "AMR 03 is currently located in Zone B at coordinates (12, 7)."
        assert result.response.type == ResponseType.ROBOT
        assert result.response.title == "AMR 03 Location"
        assert result.response.data.id == 3

    def test_status(self, snapshot):
        result = evaluate_query("status of AMR 1", snapshot)
        assert result.message == (
            "AMR 01 is currently active. It has a battery level of 85% and is working on Pallet Transport."
        )

    def test_battery(self, snapshot):
        result = evaluate_query("battery of amr 2", snapshot)
        assert result.message == (
            "AMR 02 currently has a battery level of 25%. The battery is running low and should be charged soon."
        )

    def test_tool(self, snapshot):
        result = evaluate_query("what tool is robot 3 using", snapshot)
        assert result.message == (
            "AMR 03 is currently equipped with the Gripper Arm tool and is actively using it for Box Sorting."
        )
        assert result.response.title == "AMR 03 Equipment"

    def test_recent_activity(self, snapshot):
        result = evaluate_query("recent activity for AMR 3", snapshot)
        assert "AMR 03 completed pallet transport" in result.message
        assert dump(result)["response"]["metadata"]["secondaryData"] == ["08:45 - AMR 03 completed pallet transport"]

    def test_general_summary_uses_article(self, snapshot):
        result = evaluate_query("tell me about AMR 4", snapshot)
        assert result.message.startswith("AMR 04 is an idle robot in Zone B.")
        assert result.response.title == "AMR 04 Information"

    def test_unknown_robot(self, snapshot):
        result = evaluate_query("where is AMR 99", snapshot)
        assert result.response.type == ResponseType.ERROR
        assert result.response.title == "Robot Not Found"
        assert "AMR 99" in result.message

    def test_pairwise_comparison(self, snapshot):
        result = evaluate_query("compare AMR 1 and AMR 2", snapshot)
        payload = dump(result)["response"]
        assert payload["type"] == "comparison"
        assert payload["metadata"]["chartData"]["Efficiency"] == {"AMR 01": 90, "AMR 02": 70}
        assert payload["metadata"]["chartData"]["Battery"] == {"AMR 01": 85, "AMR 02": 25}
        assert "AMR 01 is the more efficient of the two." in result.message


class TestZoneLookup:
    def test_general_summary(self, snapshot):
        result = evaluate_query("zone b status", snapshot)
        assert result.message == (
            "Zone B is a medium priority zone with 2 AMRs. The zone has 4 pending tasks, 50 completed tasks, "
            "and is operating at 85% efficiency with high traffic density."
        )
        assert result.response.type == ResponseType.ZONE

    def test_no_idle_robots_in_zone(self, snapshot):
        result = evaluate_query("idle robots in zone a", snapshot)
        assert result.message == "No idle robots found in Zone A."

    def test_idle_robots_in_zone(self, snapshot):
        result = evaluate_query("idle robots in zone b", snapshot)
        assert result.message == "Found 1 idle robots in Zone B."
        assert [r.id for r in result.response.data] == [4]

    def test_robots_in_zone(self, snapshot):
        result = evaluate_query("robots in zone c", snapshot)
        assert "There are 2 AMRs in this zone: AMR 05, AMR 06." in result.message
        assert result.response.title == "Zone C Robots"

    def test_efficiency(self, snapshot):
        result = evaluate_query("zone a efficiency", snapshot)
        assert result.message.startswith("Zone A is currently operating at 90% efficiency.")

    def test_unknown_zone(self, snapshot):
        result = evaluate_query("status of zone d", snapshot)
        assert result.response.type == ResponseType.ERROR
        assert result.message == (
            "I couldn't find Zone D in the system. Available zones are Zone A, Zone B, and Zone C."
        )


class TestWarehouseWide:
    def test_overview(self, snapshot):
        result = evaluate_query("give me an overview", snapshot)
        assert result.message == (
            "The warehouse currently has 2 active AMRs out of a total of 6. The overall robot efficiency "
            "is 75% with 140 tasks completed today."
        )
        metadata = dump(result)["response"]["metadata"]
        assert len(metadata["secondaryData"]) == 5
        assert metadata["chartData"] == {"Active": 2, "Idle": 2, "Charging": 1, "Maintenance": 1}

    def test_most_efficient_robot(self, snapshot):
        result = evaluate_query("which robot has the best efficiency", snapshot)
        assert result.message == (
            "The most efficient robot is AMR 01 with an efficiency rating of 90%. It's currently active in Zone A."
        )

    def test_least_efficient_zone(self, snapshot):
        result = evaluate_query("zones with the lowest efficiency", snapshot)
        assert result.response.title == "Least Efficient Zone"
        assert result.response.data.id == "Zone C"

    def test_general_efficiency(self, snapshot):
        result = evaluate_query("efficiency report", snapshot)
        assert result.response.type == ResponseType.COMPARISON
        chart = dump(result)["response"]["metadata"]["chartData"]
        assert chart["AMR 01"] == 90
        assert chart["Zone A"] == 90

    def test_idle_status(self, snapshot):
        result = evaluate_query("idle robot status", snapshot)
        assert result.message == "There are 2 idle AMRs in the warehouse. AMR 04 is currently idle in Zone B."

    def test_status_distribution(self, snapshot):
        result = evaluate_query("fleet status", snapshot)
        assert result.message == (
            "The warehouse currently has 2 active AMRs out of 6 total. 1 are charging, "
            "1 are in maintenance, and 2 are idle."
        )
        assert result.response.type == ResponseType.MULTI_ROBOT

    def test_maintenance(self, snapshot):
        result = evaluate_query("anything in maintenance?", snapshot)
        assert result.message == (
            "There are 1 AMRs currently undergoing maintenance. AMR 05 is in maintenance in Zone C."
        )

    def test_no_maintenance_is_an_error(self, low_battery_snapshot):
        result = evaluate_query("anything in maintenance?", low_battery_snapshot)
        assert result.response.type == ResponseType.ERROR

    def test_lowest_battery(self, snapshot):
        result = evaluate_query("lowest battery", snapshot)
        assert result.message.startswith("AMR 05 has the lowest battery at 15%.")

    def test_charging(self, snapshot):
        result = evaluate_query("which robots are charging", snapshot)
        assert result.message == "There are 1 AMRs currently charging. AMR 02 is charging in Zone A at 25%."

    def test_battery_distribution(self, snapshot):
        result = evaluate_query("battery levels", snapshot)
        assert result.message == (
            "The average battery level across all AMRs is 53%. There are 1 robots with critical "
            "battery levels (below 20%)."
        )
        chart = dump(result)["response"]["metadata"]["chartData"]
        assert chart == {
            "Critical (0-20%)": 1,
            "Low (20-40%)": 1,
            "Medium (40-60%)": 1,
            "Good (60-80%)": 1,
            "Full (80-100%)": 2,
        }
        assert [r.battery_level for r in result.response.data] == [95, 85, 60, 40, 25, 15]

    def test_robot_locations(self, snapshot):
        result = evaluate_query("where are the robots", snapshot)
        assert result.message == (
            "Most AMRs are currently in Zone A (2 robots). Zone A: 2 AMRs, Zone B: 2 AMRs, Zone C: 2 AMRs."
        )


class TestListings:
    def test_all_robots_by_battery(self, snapshot):
        result = evaluate_query("show all robots by battery", snapshot)
        assert result.response.title == "All Robots by Battery Level"
        assert [r.id for r in result.response.data] == [4, 1, 3, 6, 2, 5]

    def test_all_robots_unsorted(self, snapshot):
        result = evaluate_query("show all robots", snapshot)
        assert result.message == "Here are all 6 AMRs in the warehouse."

    def test_all_zones_by_priority(self, snapshot):
        result = evaluate_query("list all zones by priority", snapshot)
        assert result.response.title == "All Zones by Priority"
        assert [z.id for z in result.response.data] == ["Zone A", "Zone B", "Zone C"]
        assert result.response.type == ResponseType.MULTI_ZONE


class TestComparison:
    def test_robots_by_efficiency(self, snapshot):
        result = evaluate_query("compare robots by efficiency", snapshot)
        assert result.message == "Comparing AMRs by efficiency. The highest is AMR 01 at 90% efficiency."
        assert len(dump(result)["response"]["metadata"]["chartData"]) == 6

    def test_robots_by_status(self, snapshot):
        result = evaluate_query("compare robot status", snapshot)
        assert result.message == "Comparing AMRs by status: 2 active, 2 idle, 1 charging, and 1 in maintenance."

    def test_robots_by_battery(self, snapshot):
        result = evaluate_query("compare robots by battery", snapshot)
        assert result.message == "Comparing AMRs by battery level. The highest is AMR 04 at 95%."
        assert result.response.title == "Robot Battery Level Comparison"

    def test_robots_by_tool(self, snapshot):
        result = evaluate_query("compare robots by tool", snapshot)
        assert result.response.title == "Robot Tool Comparison"
        assert dump(result)["response"]["metadata"]["chartData"]["Forklift Attachment"] == 2

    def test_zones_by_traffic(self, snapshot):
        result = evaluate_query("compare zones by traffic", snapshot)
        assert result.message == "Comparing zones by traffic density: 1 high, 1 medium, and 1 low."

    def test_unclear_subject(self, snapshot):
        result = evaluate_query("compare stuff", snapshot)
        assert result.response.type == ResponseType.ERROR
        assert result.response.title == "Comparison"


class TestCounts:
    def test_zone_count(self, snapshot):
        result = evaluate_query("how many zones", snapshot)
        assert "3 total zones in the warehouse: 1 high priority, 1 medium priority, and 1 low priority" in result.message

    def test_robot_count_sums_to_total(self, snapshot):
        result = evaluate_query("how many robots", snapshot)
        assert result.message == (
            "There are 6 total AMRs in the warehouse: 2 active, 2 idle, 1 charging, and 1 in maintenance."
        )
        counts = dump(result)["response"]["metadata"]["secondaryData"]
        assert sum(counts.values()) == len(snapshot.robots)

    def test_task_count(self, snapshot):
        result = evaluate_query("how many tasks", snapshot)
        assert result.message == "There are 14 pending tasks and 140 completed tasks today across all zones."


class TestTiers:
    def test_highest_priority(self, snapshot):
        result = evaluate_query("highest priority zones", snapshot)
        assert result.message == (
            "There are 1 high priority zones: Zone A. These zones have a total of 8 pending tasks."
        )

    def test_priority_breakdown(self, snapshot):
        result = evaluate_query("zone priority breakdown", snapshot)
        assert result.response.title == "Zones by Priority"
        assert dump(result)["response"]["metadata"]["chartData"] == {"High": 1, "Medium": 1, "Low": 1}

    def test_highest_traffic(self, snapshot):
        result = evaluate_query("where is traffic the highest", snapshot)
        assert result.message == (
            "There are 1 high traffic zones: Zone B. These zones might experience congestion with 2 robots."
        )

    def test_empty_tier_is_an_error(self, low_battery_snapshot):
        result = evaluate_query("highest traffic", low_battery_snapshot)
        assert result.response.type == ResponseType.ERROR


class TestEntityLookupProperties:
    @pytest.mark.parametrize("template", ["AMR {}", "robot {}"])
    def test_every_robot_resolves(self, snapshot, template):
        for robot in snapshot.robots:
            result = evaluate_query(template.format(robot.id), snapshot)
            assert result.response.type == ResponseType.ROBOT
            assert result.response.data.id == robot.id

    @pytest.mark.parametrize("letter", ["A", "B", "C"])
    def test_every_zone_resolves(self, snapshot, letter):
        result = evaluate_query(f"Zone {letter}", snapshot)
        assert result.response.type == ResponseType.ZONE
        assert result.response.data.id == f"Zone {letter}"

    def test_zone_priority_counts_sum_to_zone_total(self, snapshot):
        result = evaluate_query("how many zones", snapshot)
        assert sum(dump(result)["response"]["metadata"]["chartData"].values()) == len(snapshot.zones)

    def test_low_battery_optimization(self, low_battery_snapshot):
        result = evaluate_query("optimize resources", low_battery_snapshot)
        suggestions = dump(result)["response"]["metadata"]["secondaryData"]
        charging = [s for s in suggestions if s.startswith("Schedule")]
        assert len(charging) == 1
        assert "5" in charging[0]
