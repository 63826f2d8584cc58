from dataclasses import dataclass

from src.catalog.core.services import (
    BackgroundTaskRunner,
    DbSessionService,
    ImageAssetManager,
)


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    task_runner: BackgroundTaskRunner
    image_asset_manager: ImageAssetManager
