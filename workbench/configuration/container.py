from dataclasses import dataclass

import httpx

from workbench.adapters.outbound.agile_adapter import AgileAdapter
from workbench.adapters.outbound.ai_gateway_adapter import AIGatewayAdapter
from workbench.adapters.outbound.jira_adapter import JiraAdapter
from workbench.adapters.outbound.jira_http_client import JiraHttpClient
from workbench.application.services.adf_renderer import AdfRenderer
from workbench.application.services.prompt_renderer import PromptRenderer
from workbench.application.services.sprint_resolver import SprintResolver
from workbench.application.use_cases.check_jira_connection import CheckJiraConnectionUseCase
from workbench.application.use_cases.create_story import CreateStoryUseCase
from workbench.application.use_cases.get_sprint_info import GetSprintInfoUseCase
from workbench.application.use_cases.get_ticket import GetTicketUseCase
from workbench.configuration.settings import Settings


@dataclass(frozen=True)
class Container:
    settings: Settings
    create_story_use_case: CreateStoryUseCase
    get_sprint_info_use_case: GetSprintInfoUseCase
    get_ticket_use_case: GetTicketUseCase
    check_jira_connection_use_case: CheckJiraConnectionUseCase


def build_container(settings: Settings, transport: httpx.BaseTransport | None = None) -> Container:
    """
    설정으로부터 어댑터와 Use Case를 조립합니다.

    transport는 테스트에서 httpx.MockTransport를 주입할 때 사용합니다.
    """
    http_client = JiraHttpClient(config=settings.jira.connection(), transport=transport)
    jira_adapter = JiraAdapter(http=http_client)
    agile_adapter = AgileAdapter(http=http_client)

    sprint_resolver = SprintResolver(agile_port=agile_adapter)
    adf_renderer = AdfRenderer()

    # gateway_url이 없으면 AI 보강 비활성
    enhancer = None
    if settings.ai.gateway_url:
        enhancer = AIGatewayAdapter(
            gateway_url=settings.ai.gateway_url,
            api_key=settings.ai.api_key,
            renderer=PromptRenderer(settings.ai.prompt, settings.ai.message_template),
            model=settings.ai.model,
            max_tokens=settings.ai.max_tokens,
            timeout_ms=settings.ai.timeout_ms,
            transport=transport,
        )

    create_story_use_case = CreateStoryUseCase(
        jira_port=jira_adapter,
        sprint_resolver=sprint_resolver,
        adf_renderer=adf_renderer,
        jira_settings=settings.jira,
        enhancer=enhancer,
        ai_enabled_by_default=settings.ai.enabled,
    )

    get_sprint_info_use_case = GetSprintInfoUseCase(
        jira_port=jira_adapter,
        sprint_resolver=sprint_resolver,
        jira_settings=settings.jira,
    )

    return Container(
        settings=settings,
        create_story_use_case=create_story_use_case,
        get_sprint_info_use_case=get_sprint_info_use_case,
        get_ticket_use_case=GetTicketUseCase(jira_port=jira_adapter),
        check_jira_connection_use_case=CheckJiraConnectionUseCase(
            jira_port=jira_adapter,
            sprint_resolver=sprint_resolver,
            jira_settings=settings.jira,
        ),
    )
