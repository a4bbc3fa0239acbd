from typing import Protocol

from workbench.domain.result import Result
from workbench.domain.story import TicketContent


class ContentEnhancerPort(Protocol):
    """AI 게이트웨이를 통한 제목/설명 보강 계약"""

    def enhance(self, content: TicketContent) -> Result[TicketContent]:
        """보강된 콘텐츠를 반환합니다. 실패 시 호출자가 원본을 사용합니다."""
        ...
