"""NiceGUI chat interface with progressive rendering of streamed replies."""

import logging
import os

from nicegui import app, ui

from relaychat.client.composer import split_display_text, split_reply_segments
from relaychat.client.consumer import API_BASE_URL, RelayClient
from relaychat.client.store import ConversationStore, select_backend
from relaychat.client.turn import ChatTurn
from relaychat.models.schemas import Message

logger = logging.getLogger(__name__)

CUSTOM_CSS = """
<style>
    body { background: #111827; min-height: 100vh; }
    .message-user { background: linear-gradient(135deg, #2563eb 0%, #9333ea 100%); color: white;
                    border-radius: 18px 18px 4px 18px; }
    .message-assistant { background: #374151; color: #f3f4f6; border-radius: 18px 18px 18px 4px; }
    .thinking { background: rgba(113, 63, 18, 0.6); border: 1px solid rgba(250, 204, 21, 0.3);
                color: #fef08a; font-family: monospace; }
    .conversation-active { background: rgba(255, 255, 255, 0.1); }
</style>
"""


class PageState:
    """Per-page UI state."""

    def __init__(self, current_id: str) -> None:
        self.current_id = current_id
        self.is_streaming = False
        self.show_thinking = True


def render_body(text: str, show_thinking: bool) -> None:
    """Render an assistant display text: thinking block, then the reply."""
    reasoning, reply = split_display_text(text)
    if reasoning and show_thinking:
        with ui.expansion("Thinking", icon="psychology", value=True).classes("thinking rounded w-full text-xs"):
            ui.label(reasoning).classes("whitespace-pre-wrap")
    for segment in split_reply_segments(reply):
        if segment.is_code:
            # ui.code carries its own copy button
            ui.code(segment.text, language=segment.language or "text").classes("w-full")
        elif segment.text.strip():
            ui.markdown(segment.text).classes("text-sm")


def copy_reply(text: str) -> None:
    """Copy an assistant message to the clipboard, without its thinking span."""
    _, reply = split_display_text(text)
    ui.clipboard.write(reply)
    ui.notify("Copied to clipboard", type="positive", timeout=1000)


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    ui.dark_mode().enable()

    store = ConversationStore(select_backend(app.storage.user))
    store.load()
    if not store.conversations:
        store.create()
    state = PageState(store.conversations[0].id)
    turn = ChatTurn(RelayClient(API_BASE_URL), store)

    conversation_list: ui.column
    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button

    def render_message(message: Message) -> None:
        align = "justify-start" if message.is_bot else "justify-end"
        bubble = "message-assistant" if message.is_bot else "message-user"
        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes(f"max-w-[75%] px-4 py-3 gap-2 {bubble}"):
                if message.is_bot:
                    render_body(message.text, state.show_thinking)
                else:
                    ui.label(message.text).classes("text-sm whitespace-pre-wrap")
                with ui.row().classes("w-full items-center justify-between"):
                    ui.label(message.timestamp.strftime("%I:%M %p")).classes("text-[10px] opacity-60")
                    if message.is_bot:
                        ui.button(
                            icon="content_copy", on_click=lambda _, text=message.text: copy_reply(text)
                        ).props("flat round dense size=xs").tooltip("Copy message")

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            for message in store.get(state.current_id).messages:
                render_message(message)

    def refresh_conversations() -> None:
        conversation_list.clear()
        with conversation_list:
            for conversation in store.conversations:
                active = "conversation-active" if conversation.id == state.current_id else ""
                with ui.row().classes(f"w-full items-center justify-between rounded px-2 {active}"):
                    ui.label(conversation.title).classes("text-sm cursor-pointer truncate flex-grow").on(
                        "click", lambda _, cid=conversation.id: select_conversation(cid)
                    )
                    ui.button(
                        icon="delete", on_click=lambda _, cid=conversation.id: delete_conversation(cid)
                    ).props("flat round dense size=sm")

    def refresh() -> None:
        refresh_conversations()
        refresh_messages()

    def select_conversation(conversation_id: str) -> None:
        if state.is_streaming:
            return
        state.current_id = conversation_id
        refresh()

    def new_conversation() -> None:
        if state.is_streaming:
            return
        state.current_id = store.create().id
        refresh()

    def delete_conversation(conversation_id: str) -> None:
        if state.is_streaming:
            return
        next_id = store.delete(conversation_id)
        if conversation_id == state.current_id or state.current_id not in {c.id for c in store.conversations}:
            state.current_id = next_id
        refresh()

    def toggle_thinking(event) -> None:
        state.show_thinking = bool(event.value)
        refresh_messages()

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text or state.is_streaming:
            return

        input_field.value = ""
        state.is_streaming = True
        send_btn.disable()

        with messages_container:
            render_message(Message(id=0, text=text, is_bot=False))
            with ui.row().classes("w-full justify-start"):
                live = ui.column().classes("max-w-[75%] px-4 py-3 gap-2 message-assistant")
                with live:
                    ui.spinner("dots")

        def on_update(display_text: str) -> None:
            live.clear()
            with live:
                render_body(display_text, state.show_thinking)

        try:
            result = await turn.run(state.current_id, text, on_update)
            if result.error:
                ui.notify(result.error, type="negative")
        finally:
            state.is_streaming = False
            send_btn.enable()
            refresh()

    # === UI Layout ===
    with ui.left_drawer().classes("bg-gray-900 p-3"):
        ui.button("New Chat", icon="add", on_click=new_conversation).classes("w-full")
        conversation_list = ui.column().classes("w-full gap-1 mt-3")

    with ui.header().classes("items-center justify-between bg-gray-800"):
        ui.label("DeathChat").classes("text-lg font-semibold")
        ui.switch("Show thinking", value=True, on_change=toggle_thinking)

    with ui.column().classes("w-full max-w-4xl mx-auto gap-4 pb-28"):
        messages_container = ui.column().classes("w-full gap-4")

    with ui.footer().classes("bg-gray-800"):
        with ui.row().classes("w-full max-w-4xl mx-auto gap-3 items-end"):
            input_field = (
                ui.textarea(placeholder="Type a message...")
                .props("autogrow dense rows=1 dark")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")

    refresh()


def main() -> None:
    ui.run(
        title="DeathChat",
        port=int(os.getenv("UI_PORT", "8080")),
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "relaychat-secret"),
        reload=False,
    )


if __name__ == "__main__":
    main()
