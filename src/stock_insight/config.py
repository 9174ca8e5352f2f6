import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Optional


def _env_float_opt(name: str) -> Optional[float]:
    """
    Read an optional float from env. Returns None if unset, blank, or non-numeric.
    """
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if raw == "" or raw.lower() in {"none", "null"} or raw.startswith("#"):
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _env_int_opt(name: str) -> Optional[int]:
    val = _env_float_opt(name)
    return int(val) if val is not None else None


def _b(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in {
        "1",
        "true",
        "yes",
        "y",
        "on",
    }


def _symbols(name: str, default: str) -> FrozenSet[str]:
    raw = os.getenv(name, default) or ""
    return frozenset(s.strip().upper() for s in raw.split(",") if s.strip())


DISTRIBUTION_MODES = ("deterministic", "probabilistic")


def _distribution_mode() -> str:
    mode = (os.getenv("SENTIMENT_DISTRIBUTION_MODE") or "deterministic").strip().lower()
    # Unknown values fall back to the reproducible split.
    return mode if mode in DISTRIBUTION_MODES else "deterministic"


@dataclass
class Settings:
    # --- Analysis backend ---
    # Base URL of the REST backend serving GET /analysis/{symbol}.  The
    # engine itself never performs I/O; only AnalysisClient and the CLI
    # read these two values.
    api_base_url: str = field(
        default_factory=lambda: os.getenv(
            "ANALYSIS_API_BASE_URL", "http://localhost:8080/api"
        ).rstrip("/")
    )
    api_timeout: float = field(
        default_factory=lambda: _env_float_opt("ANALYSIS_API_TIMEOUT") or 10.0
    )

    # --- Logging ---
    # LOG_PLAIN=1 switches console output from JSON lines to a colourised
    # single-line format.  The rotating JSONL file under data/logs is
    # written either way.
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_plain: bool = field(default_factory=lambda: _b("LOG_PLAIN", False))
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("DATA_DIR", "data"))
    )

    # --- News sentiment distribution ---
    # "deterministic" assigns the dominant label to the first
    # ceil(n * confidence) unmatched articles; "probabilistic" draws each
    # unmatched article independently with p = confidence.  The seed only
    # applies to the probabilistic mode and is unset by default.
    distribution_mode: str = field(default_factory=_distribution_mode)
    random_seed: Optional[int] = field(
        default_factory=lambda: _env_int_opt("SENTIMENT_RANDOM_SEED")
    )

    # --- Market cap defaults (millions, same base as the API) ---
    # Used only when neither the caller, the API, the analysis text nor the
    # company overview provides a market cap.
    mega_cap_symbols: FrozenSet[str] = field(
        default_factory=lambda: _symbols(
            "MEGA_CAP_SYMBOLS", "AAPL,MSFT,GOOGL,GOOG,AMZN,NVDA,META"
        )
    )
    mega_cap_default_market_cap: float = field(
        default_factory=lambda: _env_float_opt("MEGA_CAP_DEFAULT_MARKET_CAP")
        or 2_000_000.0
    )
    default_market_cap: float = field(
        default_factory=lambda: _env_float_opt("DEFAULT_MARKET_CAP") or 10_000.0
    )

    @property
    def probabilistic(self) -> bool:
        return self.distribution_mode == "probabilistic"


SETTINGS = Settings()


def get_settings() -> Settings:
    return SETTINGS
