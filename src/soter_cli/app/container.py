from __future__ import annotations

import logging

from dependency_injector import containers, providers

from ..config.settings import AppConfig
from ..core.services.result_formatter import ResultFormatter
from ..core.usecases.check_orchestrator import CheckOrchestrator
from ..infra.json_checker import JsonDatabaseChecker
from ..infra.progress_rich import RichProgressReporter

logger = logging.getLogger(__name__)


class Container(containers.DeclarativeContainer):
	config = providers.Configuration()

	checker = providers.Singleton(
		JsonDatabaseChecker,
		database_path=config.database_path,
		manifest_path=config.manifest_path,
	)

	# A fresh reporter per batch; the orchestrator calls the provider itself
	progress = providers.Factory(RichProgressReporter)

	formatter = providers.Factory(ResultFormatter)

	orchestrator = providers.Singleton(
		CheckOrchestrator,
		checker=checker,
		progress_factory=progress.provider,
		formatter=formatter,
	)


def build_container(config: AppConfig | None = None) -> Container:
	"""Create a container configured from `config` (environment when omitted)."""
	config = config or AppConfig()
	container = Container()
	container.config.from_pydantic(config)
	logger.debug(f"Container configured: database={config.database_path}, manifest={config.manifest_path}")
	return container
