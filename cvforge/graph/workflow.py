from __future__ import annotations
from typing import Awaitable, Callable, List, Optional
from langgraph.graph import StateGraph, END
from pydantic import BaseModel, Field

from ..errors import CVForgeError
from ..session import Session
from ..utils import load_document


class WorkflowState(BaseModel):
    # Input
    cv_path: Optional[str] = None
    cv_text: Optional[str] = None
    notes: Optional[str] = None
    with_translation: bool = False

    # Output
    extracted: bool = False
    translated: bool = False
    recommendation: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


def build_graph(session: Session) -> Callable[[WorkflowState], Awaitable[WorkflowState]]:
    """Wire the pipelines of ``session`` into one run: load -> extract -> translate -> recommend.

    Each step is skipped when its input is absent. A failed pipeline is reported
    in ``errors`` and does not stop the later ones.
    """

    async def load_input_node(state: WorkflowState) -> WorkflowState:
        try:
            if state.cv_path:
                doc = load_document(state.cv_path)
                if isinstance(doc, str):
                    session.set_cv_text(doc)
                else:
                    session.set_cv_file(doc)
            elif state.cv_text:
                session.set_cv_text(state.cv_text)
        except (OSError, ValueError, CVForgeError) as e:
            state.errors.append(f"Load CV error: {e}")
        if state.notes:
            session.set_notes(state.notes)
        return state

    async def extract_node(state: WorkflowState) -> WorkflowState:
        if not session.cv_text.strip() and session.cv_file is None:
            return state
        try:
            state.extracted = await session.extract()
        except CVForgeError as e:
            state.errors.append(f"CV extraction error: {e}")
            return state
        if not state.extracted:
            state.errors.append(f"CV extraction error: {session.extraction_guard.error}")
        return state

    async def translate_node(state: WorkflowState) -> WorkflowState:
        if not state.with_translation:
            return state
        try:
            state.translated = await session.translate()
        except CVForgeError as e:
            state.errors.append(f"Translation error: {e}")
            return state
        if not state.translated:
            state.errors.append(f"Translation error: {session.translation_guard.error}")
        return state

    async def recommend_node(state: WorkflowState) -> WorkflowState:
        if not session.notes.strip():
            return state
        if not session.can_recommend:
            state.errors.append("Recommendation skipped: the profile has no full name.")
            return state
        try:
            ok = await session.recommend()
        except CVForgeError as e:
            state.errors.append(f"Recommendation error: {e}")
            return state
        if not ok:
            state.errors.append(f"Recommendation error: {session.recommendation_guard.error}")
        state.recommendation = session.recommendation_text
        return state

    g = StateGraph(WorkflowState)
    g.add_node("load_input", load_input_node)
    g.add_node("extract", extract_node)
    g.add_node("translate", translate_node)
    g.add_node("recommend", recommend_node)

    g.set_entry_point("load_input")
    g.add_edge("load_input", "extract")
    g.add_edge("extract", "translate")
    g.add_edge("translate", "recommend")
    g.add_edge("recommend", END)

    app = g.compile()

    async def runner(state: WorkflowState) -> WorkflowState:
        final = await app.ainvoke(state)
        # LangGraph may return a plain dict; coerce into WorkflowState for uniform handling
        if isinstance(final, dict):
            final = WorkflowState.model_validate(final)
        return final

    return runner
