"""Common base classes shared by the dumper pipeline components."""

from __future__ import annotations

import logging

from geo_tracks.config import DumperConfig


class PipelineComponent:
    """Provide shared configuration handling and logging for components."""

    def __init__(self, config: DumperConfig) -> None:
        """Initialise the component with configuration and a dedicated logger."""

        self.config: DumperConfig = config
        self.logger: logging.Logger = logging.getLogger(self.__class__.__name__)
