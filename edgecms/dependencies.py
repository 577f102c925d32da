"""
FastAPI dependencies

Authentication is handled upstream; the acting user's id arrives in the
``X-User-Id`` header and is only recorded as ``created_by`` on new drafts.
"""

from typing import Annotated

from fastapi import Header, Request

from edgecms.context import AppContext
from edgecms.workflows.engine import WorkflowEngine


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_workflow_engine(request: Request) -> WorkflowEngine:
    return request.app.state.workflow_engine


def get_current_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str | None:
    return x_user_id or None
