from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from stable_flow_lab import demo
from stable_flow_lab.config import Settings, load_settings
from stable_flow_lab.sources import UpstreamError
from stable_flow_lab.visualization import Visualizer


def test_loads_example_config() -> None:
    settings = load_settings(Path(__file__).resolve().parents[1] / "configs" / "demo.toml", environ={})
    assert settings.output["show"] is False
    assert settings.output["charts"] == ["breakdown", "dominance", "chains"]
    assert settings.demo_raw_volume == 82e9
    assert settings.artemis_api_key is None


class FixtureClient:
    payloads: dict[str, Any] = {}

    def __init__(self, **_kwargs: Any) -> None:
        pass

    def stablecoins(self) -> Any:
        return self.payloads["stablecoins"]

    def bridges(self) -> Any:
        return self.payloads["bridges"]


class DownClient(FixtureClient):
    def stablecoins(self) -> Any:
        raise UpstreamError("Request timeout: https://stablecoins.llama.fi")


@pytest.fixture()
def no_charts(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    drawn: list[str] = []
    for name in ("bar_volume_breakdown", "pie_dominance", "bar_chain_supply"):
        monkeypatch.setattr(
            Visualizer, name, staticmethod(lambda *_a, _n=name, **_k: drawn.append(_n))
        )
    return drawn


def test_run_prints_and_writes_snapshot(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    fixture_json,
    no_charts: list[str],
) -> None:
    FixtureClient.payloads = {
        "stablecoins": fixture_json("stablecoins.json"),
        "bridges": fixture_json("bridges.json"),
    }
    monkeypatch.setattr(demo, "DefiLlamaClient", FixtureClient)
    settings = Settings(output={"outdir": str(tmp_path), "show": False, "charts": ["breakdown", "chains"]})

    assert demo.run(settings, 1000.0) == 0

    out = capsys.readouterr().out
    assert "Adjusted volume:      $420.00" in out
    assert "Source:               estimated" in out
    assert "USDT" in out
    assert (tmp_path / "stablecoins.csv").exists()
    assert (tmp_path / "volume_breakdown.csv").exists()
    assert no_charts == ["bar_volume_breakdown", "bar_chain_supply"]


def test_run_reports_upstream_failure(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture, no_charts: list[str]
) -> None:
    monkeypatch.setattr(demo, "DefiLlamaClient", DownClient)
    with caplog.at_level("ERROR", logger="stable_flow_lab.demo"):
        assert demo.run(Settings(), 10.0) == 1
    assert "DefiLlama unavailable" in caplog.text
    assert no_charts == []


def test_main_rejects_non_positive_volume(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    cfg = tmp_path / "zero.toml"
    cfg.write_text("[demo]\nraw_volume = 0\n")
    monkeypatch.setattr("sys.argv", ["stable-flow-demo", str(cfg)])
    monkeypatch.delenv("STABLE_FLOW_CONFIG", raising=False)
    with pytest.raises(SystemExit) as exc:
        demo.main()
    assert exc.value.code == 2


def test_main_takes_volume_from_argv(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[float] = []
    monkeypatch.delenv("STABLE_FLOW_CONFIG", raising=False)
    monkeypatch.setattr(demo, "run", lambda _settings, raw: seen.append(raw) or 0)
    monkeypatch.setattr("sys.argv", ["stable-flow-demo", "2500"])
    with pytest.raises(SystemExit) as exc:
        demo.main()
    assert exc.value.code == 0
    assert seen == [2500.0]


@pytest.mark.parametrize("arg", ["-5", "-0.5", "0", "nan"])
def test_main_rejects_bad_volume_from_argv(monkeypatch: pytest.MonkeyPatch, arg: str) -> None:
    seen: list[float] = []
    monkeypatch.delenv("STABLE_FLOW_CONFIG", raising=False)
    monkeypatch.setattr(demo, "run", lambda _settings, raw: seen.append(raw) or 0)
    monkeypatch.setattr("sys.argv", ["stable-flow-demo", arg])
    with pytest.raises(SystemExit) as exc:
        demo.main()
    assert exc.value.code == 2
    assert seen == []
