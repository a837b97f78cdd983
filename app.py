# app.py
"""
This module implements a Chainlit chatbot on top of an ephemeral Gemini File
Search session. Users upload one or more documents, which are indexed into a
fresh File Search store; questions are then answered from that store with
source citations. Accuracy mode and context window are exposed as chat
settings. The store is deleted when the chat ends, and on a best-effort basis
when the process exits.
"""

# imports built-in modules
import asyncio
from typing import List, Optional

# imports third-party modules
import chainlit as cl
from chainlit.input_widget import Select

# imports local modules
from ragchat.config import config
from ragchat.core import (
    AccuracyMode,
    AppStatus,
    ContextWindow,
    ProgressState,
    RagServiceClient,
    SessionManager,
    SourceFile,
    unload_guard,
)
from ragchat.core.progress import ProgressSnapshot
from ragchat.core.session import ERROR_REPLY
from ragchat.exceptions import RAGAppError
from ragchat.utils import format_response_with_citations
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

ACCEPTED_TYPES = [
    "application/pdf",
    "text/plain",
    "text/markdown",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
]

# Delete any store still open when the app exits (best effort)
unload_guard.install()


def _progress_renderer():
    """Return a progress listener that mirrors snapshots into the progress message.

    Updates are serialized through a lock so they reach the UI in order.
    """
    lock = asyncio.Lock()
    pending: List[asyncio.Task] = []

    async def render(snapshot: ProgressSnapshot) -> None:
        if snapshot.progress is None:
            return
        p = snapshot.progress
        content = f"**[{p.current}/{p.total}]** {p.message}"
        if p.file_name:
            content += f"\n`{p.file_name}`"
        msg: Optional[cl.Message] = cl.user_session.get("progress_message")
        if msg is None:
            return
        async with lock:
            msg.content = content
            await msg.update()

    def listener(snapshot: ProgressSnapshot) -> None:
        task = asyncio.get_running_loop().create_task(render(snapshot))
        pending.append(task)
        task.add_done_callback(pending.remove)

    return listener


def _sources_from(elements) -> List[SourceFile]:
    return [
        SourceFile.from_path(element.path, name=element.name)
        for element in elements
        if element.path
    ]


async def _send_suggestions(questions: List[str]) -> None:
    if not questions:
        return
    actions = [
        cl.Action(name="ask_suggestion", payload={"question": q}, label=q)
        for q in questions
    ]
    await cl.Message(content="**Try asking:**", actions=actions).send()


async def _show_progress_outcome(
    progress: ProgressState, msg: Optional[cl.Message] = None
) -> None:
    if msg is None:
        msg = cl.Message(content="")
        await msg.send()

    if progress.status == AppStatus.WELCOME and progress.api_key_error:
        msg.content = f"🔑 {progress.api_key_error}"
        await msg.update()
        return

    msg.content = f"❌ {progress.error}"
    await msg.update()
    await cl.Message(
        content="Start over with a new upload?",
        actions=[cl.Action(name="try_again", payload={}, label="Try Again")],
    ).send()


async def prompt_file_upload() -> None:
    """Ask for documents and build a new session from them."""
    manager: Optional[SessionManager] = cl.user_session.get("manager")
    progress: Optional[ProgressState] = cl.user_session.get("progress")
    if manager is None or progress is None:
        return

    files = await cl.AskFileMessage(
        content="Please upload the documents you want to chat with!",
        accept=ACCEPTED_TYPES,
        max_size_mb=config.MAX_FILE_SIZE_MB,
        max_files=10,
        timeout=config.UPLOAD_TIMEOUT,
    ).send()
    if not files:
        return

    msg = cl.Message(content="Preparing your chat...")
    await msg.send()
    cl.user_session.set("progress_message", msg)

    try:
        session = await manager.start_chat(_sources_from(files), progress)
    except Exception as e:
        logger.error(f"Failed to start chat session: {e}")
        await _show_progress_outcome(progress, msg)
        return

    if session is None:
        return

    msg.content = f"✅ All set! Chat with **{session.document_label}**."
    msg.actions = [cl.Action(name="new_chat", payload={}, label="New Chat")]
    await msg.update()
    await _send_suggestions(session.suggestions)


async def answer(question: str) -> None:
    """Run a question through the active session and post the answer."""
    manager: Optional[SessionManager] = cl.user_session.get("manager")
    progress: Optional[ProgressState] = cl.user_session.get("progress")
    settings = cl.user_session.get("settings") or {}

    if manager is None or manager.session is None:
        await cl.Message(
            content="No active session. Please upload documents to begin."
        ).send()
        return

    try:
        result = await manager.ask(
            question,
            accuracy_mode=AccuracyMode(settings.get("accuracy_mode", "moderate")),
            context_window=ContextWindow(settings.get("context_window", "medium")),
            progress=progress,
        )
    except RAGAppError as e:
        logger.error(f"Failed to get response: {e}")
        await cl.Message(content=ERROR_REPLY).send()
        if progress is not None:
            await _show_progress_outcome(progress)
        return

    await cl.Message(content=format_response_with_citations(result)).send()


@cl.on_chat_start
async def start():
    """Set up the session core and ask for the first documents."""
    try:
        client = RagServiceClient()
    except RAGAppError as e:
        await cl.Message(content=f"❌ {e}").send()
        return

    manager = SessionManager(client)
    progress = ProgressState()
    progress.subscribe(_progress_renderer())
    cl.user_session.set("manager", manager)
    cl.user_session.set("progress", progress)
    unload_guard.watch(manager)

    settings = await cl.ChatSettings(
        [
            Select(
                id="accuracy_mode",
                label="Accuracy Mode",
                items={
                    "Very Accurate": AccuracyMode.VERY_ACCURATE.value,
                    "Moderate": AccuracyMode.MODERATE.value,
                    "Creative": AccuracyMode.CREATIVE.value,
                },
                initial_value=AccuracyMode.MODERATE.value,
            ),
            Select(
                id="context_window",
                label="Context Window",
                items={
                    "Short": ContextWindow.SHORT.value,
                    "Medium": ContextWindow.MEDIUM.value,
                    "High": ContextWindow.HIGH.value,
                },
                initial_value=ContextWindow.MEDIUM.value,
            ),
        ]
    ).send()
    cl.user_session.set("settings", settings)

    await prompt_file_upload()


@cl.on_settings_update
async def on_settings_update(settings):
    cl.user_session.set("settings", settings)


@cl.on_message
async def main(message: cl.Message):
    """Handle questions and documents added during a chat."""
    manager: Optional[SessionManager] = cl.user_session.get("manager")
    progress: Optional[ProgressState] = cl.user_session.get("progress")

    if message.elements and manager is not None and manager.session is not None:
        sources = _sources_from(message.elements)
        msg = cl.Message(content=f"Adding {len(sources)} document(s)...")
        await msg.send()
        try:
            await manager.add_documents(sources, progress=progress)
        except RAGAppError as e:
            logger.error(f"Failed to add files: {e}")
            if progress is not None:
                await _show_progress_outcome(progress, msg)
            else:
                msg.content = f"❌ Failed to add files: {e}"
                await msg.update()
            return
        msg.content = f"✅ Now chatting with **{manager.session.document_label}**."
        await msg.update()
        await _send_suggestions(manager.session.suggestions)

    if message.content:
        await answer(message.content)


@cl.action_callback("ask_suggestion")
async def on_ask_suggestion(action: cl.Action):
    question = action.payload.get("question", "")
    await cl.Message(content=question, author="You", type="user_message").send()
    await answer(question)


@cl.action_callback("try_again")
async def on_try_again(action: cl.Action):
    progress: Optional[ProgressState] = cl.user_session.get("progress")
    if progress is not None and progress.status == AppStatus.ERROR:
        progress.dismiss_error()
    await prompt_file_upload()


@cl.action_callback("new_chat")
async def on_new_chat(action: cl.Action):
    """End the current session and start over with new documents."""
    manager: Optional[SessionManager] = cl.user_session.get("manager")
    progress: Optional[ProgressState] = cl.user_session.get("progress")
    if manager is None or progress is None:
        return
    manager.end_session()
    if progress.status == AppStatus.ERROR:
        progress.dismiss_error()
    else:
        progress.end_session()
    await prompt_file_upload()


@cl.on_chat_end
async def on_chat_end():
    """Delete the store in the background when the user leaves."""
    manager: Optional[SessionManager] = cl.user_session.get("manager")
    progress: Optional[ProgressState] = cl.user_session.get("progress")
    if manager is None:
        return
    manager.end_session()
    if progress is not None and progress.status == AppStatus.CHATTING:
        progress.end_session()
    unload_guard.forget(manager)
    logger.info("Chat session ended")
