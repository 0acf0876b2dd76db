import logging

import numpy as np
import pytest

from src_zncc_disparity.errors import ComputeBackendError, InvalidInput
from src_zncc_disparity.execution import ComputeBackend, StageReporter


@pytest.fixture
def backend():
    return ComputeBackend()


def test_operation_output_is_published_read_only(backend):
    grid, duration = backend.run_grid_operation("ones", lambda: np.ones((3, 4)), (3, 4))

    assert not grid.flags.writeable
    assert duration >= 0


@pytest.mark.parametrize("error, code, name", [
    (ValueError("bad value"), -30, "INVALID_VALUE"),
    (MemoryError(), -6, "OUT_OF_HOST_MEMORY"),
    (IndexError("out of range"), -59, "INVALID_OPERATION"),
])
def test_failures_are_wrapped_with_status_code(backend, error, code, name):
    def failing():
        raise error

    with pytest.raises(ComputeBackendError) as excinfo:
        backend.run_grid_operation("failing stage", failing, (2, 2))

    assert excinfo.value.code == code
    assert excinfo.value.operation == "failing stage"
    assert name in str(excinfo.value)
    assert excinfo.value.__cause__ is error


def test_wrong_output_size_is_reported(backend):
    with pytest.raises(ComputeBackendError) as excinfo:
        backend.run_grid_operation("resize", lambda: np.zeros((2, 2)), (3, 3))

    assert excinfo.value.code == -40
    assert "INVALID_IMAGE_SIZE" in str(excinfo.value)


def test_non_grid_output_is_reported(backend):
    with pytest.raises(ComputeBackendError) as excinfo:
        backend.run_grid_operation("scalar", lambda: 1.0, (1, 1))

    assert excinfo.value.code == -59


def test_pipeline_errors_pass_through_unchanged(backend):
    def invalid():
        raise InvalidInput("too small")

    with pytest.raises(InvalidInput):
        backend.run_grid_operation("preprocess", invalid, (1, 1))


def test_unknown_codes_have_fallback_name():
    assert ComputeBackendError.error_name(-5) == "OUT_OF_RESOURCES"
    assert ComputeBackendError.error_name(-9999) == "UNKNOWN_ERROR"
    assert "UNKNOWN_ERROR" in str(ComputeBackendError(-9999, "stage"))


def test_reporter_records_finished_stages():
    reporter = StageReporter()
    reporter.start("mean (left)")
    elapsed = reporter.end(backend_seconds=0.25)

    with reporter.stage("cross check"):
        pass

    stages = [stage for stage, _, _ in reporter.records]
    assert stages == ["mean (left)", "cross check"]
    assert reporter.records[0] == ("mean (left)", elapsed, 0.25)
    assert reporter.total_seconds() == pytest.approx(elapsed + reporter.records[1][1])

    frame = reporter.timing_frame()
    assert list(frame.columns) == ["stage", "wall_seconds", "backend_seconds"]
    assert frame["stage"].tolist() == stages


def test_reporter_aborted_stage_is_not_recorded():
    reporter = StageReporter()
    with pytest.raises(RuntimeError):
        with reporter.stage("occlusion fill"):
            raise RuntimeError("boom")

    assert reporter.records == []
    reporter.start("next stage")
    reporter.end()


def test_reporter_rejects_unbalanced_calls():
    reporter = StageReporter()
    with pytest.raises(RuntimeError):
        reporter.end()

    reporter.start("first")
    with pytest.raises(RuntimeError):
        reporter.start("second")


def test_reporter_uses_injected_logger():
    messages = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            messages.append(record.getMessage())

    logger = logging.getLogger("test_reporter_injected")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    handler = ListHandler()
    logger.addHandler(handler)
    try:
        reporter = StageReporter(logger=logger)
        with reporter.stage("mean (right)"):
            pass
    finally:
        logger.removeHandler(handler)

    assert messages[0] == "=== starting mean (right)"
    assert messages[1].startswith("ended mean (right) in ")
