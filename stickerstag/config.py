"""Engine configuration."""

import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings, overridable through ``STICKERSTAG_*`` environment variables."""

    # Parallel execution
    PARALLEL_MIN_PIXELS: int = 512 * 512  # Smaller buffers are processed on the calling thread
    MAX_WORKERS: int = min(8, os.cpu_count() or 1)  # 1 disables row banding

    # Filter limits
    MAX_CONVOLUTION_LEVEL: int = 32  # Soft upper bound for repeated convolution passes

    # Trigger animation
    TRIGGER_FRAME_COUNT: int = 9
    TRIGGER_FRAME_DELAY_MS: int = 20  # GIF stores delays in 10 ms steps

    # Codec
    FETCH_TIMEOUT: float = 30.0  # Seconds
    MAX_DECODE_PIXELS: int = 4096 * 4096

    model_config = {"env_prefix": "STICKERSTAG_"}


settings = Settings()
