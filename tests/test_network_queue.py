"""Tests for trafficsim.network_queue module."""

import pytest
from trafficsim.network_queue import NetworkQueue, QueueElement
from trafficsim.parameters import ConfigurationError


def test_invalid_service_rate_raises():
    with pytest.raises(ConfigurationError):
        NetworkQueue(0.0)
    with pytest.raises(ConfigurationError):
        NetworkQueue(-1.0)


def test_bulk_arrivals_fully_served_after_k_service_times():
    q = NetworkQueue(service_rate=2.0)
    q.enqueue_bulk(1.0, 4)
    q.process_until(1.0 + 4 / 2.0)
    assert q.total_arrived == 4
    assert q.total_served == 4
    assert q.queue_length == 0


def test_fifo_waiting_times():
    q = NetworkQueue(service_rate=1.0)
    q.enqueue_bulk(0.5, 3)
    q.process_until(10.0)
    # Packets start at 0.5, 1.5, 2.5: waits 0, 1, 2.
    assert q.avg_waiting_time == pytest.approx(1.0)
    assert q.avg_system_time == pytest.approx(2.0)


def test_system_time_not_below_waiting_time():
    q = NetworkQueue(service_rate=4.0)
    for t in range(10):
        q.process_until(float(t))
        q.enqueue_bulk(float(t), 6)
    q.process_until(20.0)
    assert q.avg_system_time >= q.avg_waiting_time
    assert q.total_served <= q.total_arrived


def test_partial_service():
    q = NetworkQueue(service_rate=1.0)
    q.enqueue_bulk(0.0, 5)
    q.process_until(2.0)
    assert q.total_served == 2
    assert q.queue_length == 3


def test_process_until_past_is_noop():
    q = NetworkQueue(service_rate=1.0)
    q.process_until(5.0)
    q.enqueue_bulk(5.0, 2)
    q.process_until(4.0)
    assert q.total_served == 0
    assert q.last_processed_time == 5.0


def test_non_positive_bulk_is_noop():
    q = NetworkQueue(service_rate=1.0)
    q.enqueue_bulk(0.0, 0)
    q.enqueue_bulk(0.0, -3)
    assert q.total_arrived == 0
    assert q.queue_length == 0


def test_enqueue_single_packet():
    q = NetworkQueue(service_rate=1.0)
    q.enqueue(0.0)
    assert q.total_arrived == 1


def test_empty_queue_averages_are_zero():
    q = NetworkQueue(service_rate=1.0)
    assert q.avg_waiting_time == 0.0
    assert q.avg_system_time == 0.0
    assert q.total_dropped == 0


def test_metrics_keys():
    metrics = NetworkQueue(service_rate=3.0).metrics()
    for key in ("total_arrived", "total_served", "total_dropped",
                "avg_waiting_time", "avg_system_time", "queue_length"):
        assert key in metrics


def test_queue_element_derived_times():
    element = QueueElement(1.0)
    assert element.waiting_time == 0.0
    assert element.system_time == 0.0
    element.service_start_time = 1.5
    element.departure_time = 2.5
    assert element.waiting_time == pytest.approx(0.5)
    assert element.system_time == pytest.approx(1.5)
