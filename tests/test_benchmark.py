"""Smoke test for the benchmark module with tiny sizes."""

from orderbook_viewer import benchmark


def test_generate_mock_payload_shapes():
    pairs = benchmark.generate_mock_payload(levels=3)
    records = benchmark.generate_mock_payload(levels=3, records=True)
    assert len(pairs["bids"]) == 3 and isinstance(pairs["bids"][0], list)
    assert isinstance(records["asks"][0], dict)


def test_benchmarks_run(capsys):
    assert benchmark.benchmark_normalizer(iterations=3, levels=20) > 0
    assert benchmark.benchmark_depth(iterations=3, levels=20) > 0
    assert benchmark.benchmark_gate(iterations=100) > 0
    assert "Depth Curve Benchmark" in capsys.readouterr().out
