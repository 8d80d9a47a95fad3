"""
Response Gate Module

Decides whether an upstream response is streamed through or intercepted for rewriting.
"""

from typing import Union

from rewrite_proxy.common.content_type import ContentType, MediaKind
from rewrite_proxy.domain.response import DispatchDecision


class ResponseGate:
    """
    Response Gate

    A response is intercepted only when the request path falls under the rewrite
    prefix and the response is HTML. Configuration is fixed at construction.
    """

    def __init__(self, path_prefix: str, media_kind: MediaKind = MediaKind.HTML):
        """
        Args:
            path_prefix: Rewrite-eligible path prefix, e.g. "/cardInfo"
            media_kind: Media kind that qualifies for rewriting
        """
        self.path_prefix = path_prefix
        self.media_kind = media_kind

    def decide(
        self,
        request_path: str,
        content_type: Union[ContentType, str, None],
    ) -> DispatchDecision:
        """
        Classify a response

        Args:
            request_path: Inbound request path
            content_type: Response Content-Type, parsed or raw

        Returns:
            DispatchDecision: INTERCEPT or PASSTHROUGH
        """
        if not isinstance(content_type, ContentType):
            content_type = ContentType.parse(content_type)
        if request_path.startswith(self.path_prefix) and content_type.matches(self.media_kind):
            return DispatchDecision.INTERCEPT
        return DispatchDecision.PASSTHROUGH
