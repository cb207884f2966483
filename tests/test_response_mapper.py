from pce.models.domain import ModuleTarget, NoPathReason, PathOutcome, PathRequest
from pce.services.paths.enumerator import enumerate_paths
from pce.services.responses.mapper import map_outcome, no_path_outcome, path_bandwidth
from pce.services.responses.sink import QueueSink
from pce.topology.provider import build_topology


def _graph():
    return build_topology([("A", "B", 10, 5), ("B", "C", 4, 5)])


def test_success_reports_bottleneck_capacity():
    graph = _graph()
    path = enumerate_paths(graph, "A", "C")[0]
    request = PathRequest(request_id=3, source="A", destination="C", bandwidth_demand=2, reply_to="10.0.0.1")

    outcome = map_outcome(request, path, graph)

    assert outcome.success is True
    assert outcome.vertices == ("A", "B", "C")
    assert outcome.reserved_bandwidth == 4.0
    assert outcome.reason is None
    assert outcome.reply_to == "10.0.0.1"


def test_success_without_bandwidth_reports_no_reservation():
    graph = _graph()
    path = enumerate_paths(graph, "A", "C")[0]

    outcome = map_outcome(PathRequest(request_id=4, source="A", destination="C"), path, graph)

    assert outcome.success is True
    assert outcome.reserved_bandwidth is None
    assert path_bandwidth(path, graph) == 4.0


def test_missing_path_maps_to_given_reason():
    request = PathRequest(request_id=5, source="A", destination="C", bandwidth_demand=2)

    infeasible = map_outcome(request, None, _graph())
    failed = map_outcome(request, None, _graph(), reason=NoPathReason.SOLVER_ERROR)

    assert infeasible == PathOutcome(request_id=5, success=False, reason=NoPathReason.INFEASIBLE)
    assert failed.reason is NoPathReason.SOLVER_ERROR
    assert failed.vertices == ()


def test_queue_sink_tags_outcomes_with_target():
    sink = QueueSink()
    outcome = no_path_outcome(PathRequest(request_id=1, source="A", destination="Z"), NoPathReason.ENDPOINT_UNKNOWN)

    sink.publish(outcome, ModuleTarget.SESSION)

    assert sink.outbound.get_nowait() == (ModuleTarget.SESSION, outcome)
    assert sink.drain() == []
