"""Configuration management for ClipKeeper."""

import copy
import json
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, TypeVar

from platformdirs import user_config_dir, user_log_dir

from .capture.location import SaveLocation, SaveLocationMode
from .capture.naming import NamingMode, NamingState
from .capture.pipeline import CaptureSettings
from .imaging.codec import MAX_QUALITY, MIN_QUALITY, EncodeSpec, ImageFormat
from .notifications import SoundMode

__all__ = [
    "Config",
    "FormatSettings",
    "SaveSettings",
    "NamingSettings",
    "setup_logging",
    "DEFAULT_INTERVAL_MS",
    "MIN_INTERVAL_MS",
    "MAX_INTERVAL_MS",
]

logger = logging.getLogger(__name__)

APP_NAME = "ClipKeeper"
APP_AUTHOR = "ClipKeeper"

# Polling
DEFAULT_INTERVAL_MS = 1000
MIN_INTERVAL_MS = 100
MAX_INTERVAL_MS = 5000

# Sequential naming
MIN_DIGITS = 1
MAX_DIGITS = 10

E = TypeVar("E", bound=Enum)


@dataclass
class FormatSettings:
    """Per-format encoder settings (JPEG, PNG and WebP each keep their own)."""

    quality: int = MAX_QUALITY
    grayscale: bool = False


@dataclass
class SaveSettings:
    """Where to save captured images."""

    mode: SaveLocationMode = SaveLocationMode.PICTURES
    custom_directory: str = ""

    def to_location(self) -> SaveLocation:
        return SaveLocation(mode=self.mode, custom_path=self.custom_directory)


@dataclass
class NamingSettings:
    """Filename settings."""

    use_timestamp: bool = True
    prefix: str = ""
    suffix: str = ""
    sequence_number: int = 1
    digits: int = 3

    def to_state(self) -> NamingState:
        return NamingState(
            mode=NamingMode.TIMESTAMP if self.use_timestamp else NamingMode.SEQUENTIAL,
            prefix=self.prefix,
            suffix=self.suffix,
            sequence_number=self.sequence_number,
            digits=self.digits,
        )


@dataclass
class Config:
    """Main configuration object (the settings record shared with the GUI)."""

    image_format: ImageFormat = ImageFormat.PNG
    save_location: SaveSettings = field(default_factory=SaveSettings)
    jpeg: FormatSettings = field(default_factory=FormatSettings)
    png: FormatSettings = field(default_factory=FormatSettings)
    webp: FormatSettings = field(default_factory=FormatSettings)
    naming: NamingSettings = field(default_factory=NamingSettings)
    interval_ms: int = DEFAULT_INTERVAL_MS
    auto_start: bool = False
    confirm_before_save: bool = False
    sound_mode: SoundMode = SoundMode.DEFAULT_SOUND
    debug_mode: bool = False

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the configuration directory path."""
        return Path(user_config_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_log_dir(cls) -> Path:
        """Get the log directory path."""
        return Path(user_log_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_config_file(cls) -> Path:
        """Get the config file path."""
        return cls.get_config_dir() / "config.json"

    @classmethod
    def get_lock_file(cls) -> Path:
        """Get the single-instance lock file path."""
        return cls.get_config_dir() / ".clipkeeper.lock"

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load config from file, or return defaults."""
        config_file = path or cls.get_config_file()
        if config_file.exists():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                return cls._from_dict(data)
            except Exception as e:
                logger.warning(f"Failed to load config: {e}, using defaults")
        return cls()

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary. Out-of-range values are clamped."""
        defaults = cls()
        save_data = data.get("save_location") or {}
        naming_data = data.get("naming") or {}

        config = cls(
            image_format=_enum(ImageFormat, data.get("image_format"), defaults.image_format),
            save_location=SaveSettings(
                mode=_enum(SaveLocationMode, save_data.get("mode"), defaults.save_location.mode),
                custom_directory=save_data.get("custom_directory") or "",
            ),
            jpeg=_format_settings(data.get("jpeg")),
            png=_format_settings(data.get("png")),
            webp=_format_settings(data.get("webp")),
            naming=NamingSettings(
                **{k: v for k, v in naming_data.items() if k in NamingSettings.__dataclass_fields__}
            ),
            sound_mode=_enum(SoundMode, data.get("sound_mode"), defaults.sound_mode),
            **{
                k: data[k]
                for k in ("interval_ms", "auto_start", "confirm_before_save", "debug_mode")
                if k in data
            },
        )
        return config.normalized()

    def to_dict(self) -> dict:
        return {
            "image_format": self.image_format.value,
            "save_location": {
                "mode": self.save_location.mode.value,
                "custom_directory": self.save_location.custom_directory,
            },
            "jpeg": asdict(self.jpeg),
            "png": asdict(self.png),
            "webp": asdict(self.webp),
            "naming": asdict(self.naming),
            "interval_ms": self.interval_ms,
            "auto_start": self.auto_start,
            "confirm_before_save": self.confirm_before_save,
            "sound_mode": self.sound_mode.value,
            "debug_mode": self.debug_mode,
        }

    def save(self, path: Optional[Path] = None) -> None:
        """Save config to file."""
        config_file = path or self.get_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Config saved to {config_file}")

    def normalized(self) -> "Config":
        """Clamp numeric settings into their valid ranges (in place)."""
        self.interval_ms = _clamp(int(self.interval_ms), MIN_INTERVAL_MS, MAX_INTERVAL_MS)
        for settings in (self.jpeg, self.png, self.webp):
            settings.quality = _clamp(int(settings.quality), MIN_QUALITY, MAX_QUALITY)
            settings.grayscale = bool(settings.grayscale)
        self.naming.digits = _clamp(int(self.naming.digits), MIN_DIGITS, MAX_DIGITS)
        self.naming.sequence_number = max(0, int(self.naming.sequence_number))
        self.naming.prefix = self.naming.prefix or ""
        self.naming.suffix = self.naming.suffix or ""
        return self

    def copy(self) -> "Config":
        return copy.deepcopy(self)

    def format_settings(self, fmt: Optional[ImageFormat] = None) -> FormatSettings:
        """Settings for ``fmt`` (default: the current format).

        BMP has no tunable settings and always gets the defaults.
        """
        fmt = fmt or self.image_format
        return {
            ImageFormat.JPEG: self.jpeg,
            ImageFormat.PNG: self.png,
            ImageFormat.WEBP: self.webp,
        }.get(fmt, FormatSettings())

    def encode_spec(self) -> EncodeSpec:
        settings = self.format_settings()
        return EncodeSpec(
            format=self.image_format,
            quality=settings.quality,
            grayscale=settings.grayscale,
        )

    def capture_settings(self) -> CaptureSettings:
        """Immutable snapshot of everything a capture tick reads."""
        return CaptureSettings(
            encode=self.encode_spec(),
            location=self.save_location.to_location(),
            naming=self.naming.to_state(),
            confirm_before_save=self.confirm_before_save,
            sound=self.sound_mode,
        )


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _enum(enum_cls: type[E], value, default: E) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        if value is not None:
            logger.warning(f"Unknown {enum_cls.__name__} '{value}', using {default.value}")
        return default


def _format_settings(data: Optional[dict]) -> FormatSettings:
    if not data:
        return FormatSettings()
    return FormatSettings(
        **{k: v for k, v in data.items() if k in FormatSettings.__dataclass_fields__}
    )


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    log_dir = Config.get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "clipkeeper.log"

    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(),
        ],
        force=True,
    )

    # Reduce noise from libraries. apscheduler logs every run at INFO and warns
    # about skipped runs while a save confirmation is pending.
    logging.getLogger("apscheduler").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)
