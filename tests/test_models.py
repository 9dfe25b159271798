from sentinelnet.models import (
    FileInfo,
    ForecastConfig,
    MLModelMetadata,
    PeerInfo,
    StreamingSample,
    TimeSeriesData,
)


def test_file_info_defaults_and_timestamp():
    info = FileInfo("docs/a.txt", "abc", 12, "dev-1")
    assert info.path == "docs/a.txt"
    assert info.size == 12
    assert info.version == 1
    assert info.conflict_status == "none"
    assert info.last_modified
    assert "\n" not in info.last_modified


def test_peer_info_defaults():
    peer = PeerInfo("node", "10.0.0.1", 8080)
    assert peer.port == 8080
    assert peer.latency == 0.0
    assert peer.active is True
    assert peer.last_seen == ""


def test_streaming_sample_fields():
    sample = StreamingSample([1.0, 2.0], [0.5], "peer-a")
    assert sample.features == [1.0, 2.0]
    assert sample.labels == [0.5]
    assert sample.source_id == "peer-a"
    assert sample.weight == 1.0
    assert sample.timestamp == 0


def test_streaming_samples_do_not_share_lists():
    first = StreamingSample()
    second = StreamingSample()
    first.features.append(3.0)
    assert second.features == []


def test_time_series_add_point_keeps_order():
    series = TimeSeriesData("latency")
    series.add_point(1.5, 100)
    series.add_point(2.5, 200)
    assert series.metric == "latency"
    assert series.values == [1.5, 2.5]
    assert series.timestamps == [100, 200]
    assert len(series.values) == len(series.timestamps)


def test_forecast_config_defaults_and_override():
    config = ForecastConfig()
    assert (config.horizon, config.confidence, config.sequence_length, config.algorithm) == (
        10,
        0.95,
        50,
        "simple",
    )
    custom = ForecastConfig(5, 0.8)
    assert custom.horizon == 5
    assert custom.confidence == 0.8
    assert custom.sequence_length == 50


def test_model_metadata_defaults():
    meta = MLModelMetadata(model_id="m1", model_type="online")
    assert meta.version == 1
    assert meta.accuracy == 0.0
    assert meta.sample_count == 0
    assert meta.model_id == "m1"