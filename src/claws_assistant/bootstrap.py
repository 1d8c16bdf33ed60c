from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from claws_assistant.app_config import AppConfig
from claws_assistant.collaborators import ResourceQuery
from claws_assistant.logging_config import setup_logging
from claws_assistant.providers.bedrock_provider import BedrockProvider, create_client
from claws_assistant.sessions import Context, SessionManager, SessionStore
from claws_assistant.system_prompt import build_system_prompt
from claws_assistant.tool import Tool
from claws_assistant.tool_executor import ToolExecutor
from claws_assistant.tool_registry import get_all
from claws_assistant.tools.docs_search_provider import AwsDocsSearchProvider, DocsSearchProvider
from claws_assistant.tools.log_search import CloudWatchLogSearch, LogSearch
from claws_assistant.turn_engine import TurnEngine


@dataclass
class AppRuntime:
    engine: TurnEngine
    provider: BedrockProvider
    executor: ToolExecutor
    sessions: SessionManager
    tools: list[Tool]
    log_descriptions: list[str]


def bootstrap_runtime(
    app: AppConfig,
    resources: ResourceQuery,
    *,
    context: Context | None = None,
    client: Any = None,
    log_search: LogSearch | None = None,
    docs_search: DocsSearchProvider | None = None,
    configure_logging: bool = True,
) -> AppRuntime:
    log_descriptions: list[str] = []
    if configure_logging:
        log_descriptions = setup_logging(
            level=app.log_level,
            consumers=app.log_consumers,
            config_dir=app.config_dir,
        )

    tools = get_all(
        resources,
        log_search=log_search or CloudWatchLogSearch(),
        docs_search=docs_search or AwsDocsSearchProvider(timeout_seconds=app.docs_search_timeout),
    )

    provider = BedrockProvider(
        client if client is not None else create_client(app.profile, app.region),
        model_id=app.model,
        tools=tools,
        max_tokens=app.max_tokens,
        thinking_budget=app.thinking_budget,
        temperature=app.temperature,
    )
    executor = ToolExecutor(tools, max_result_chars=app.max_tool_result_chars)
    sessions = SessionManager(
        SessionStore(app.config_dir, enabled=app.save_sessions),
        max_sessions=app.max_sessions,
    )

    engine = TurnEngine(
        provider=provider,
        executor=executor,
        sessions=sessions,
        system_prompt=build_system_prompt(resources.list_services(), context),
        max_tool_rounds=app.max_tool_rounds,
        max_tool_calls_per_query=app.max_tool_calls_per_query,
    )

    return AppRuntime(
        engine=engine,
        provider=provider,
        executor=executor,
        sessions=sessions,
        tools=tools,
        log_descriptions=log_descriptions,
    )
