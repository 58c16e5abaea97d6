from typing import List, Optional

# Discord's maximum message length
DISCORD_MAX_MESSAGE_LENGTH = 2000
# Discord's maximum thread name length
DISCORD_MAX_THREAD_NAME_LENGTH = 100


def quote_content(text: str) -> str:
    """Render ``text`` as a markdown block quote, one ``> `` per line."""
    if not text or not text.strip():
        return "> *(no text)*"
    return "\n".join(f"> {line}" for line in text.splitlines())


def persona_label(display_name: str, group_tag: Optional[str] = None) -> str:
    return f"{display_name} {group_tag}" if group_tag else display_name


def thread_name_for(author_name: str) -> str:
    """Name of the discussion thread opened under ``author_name``'s post."""
    name = f"Discussion for {author_name}'s post"
    if len(name) <= DISCORD_MAX_THREAD_NAME_LENGTH:
        return name
    return name[: DISCORD_MAX_THREAD_NAME_LENGTH - 1] + "…"


def split_message(content: str, max_length: int = DISCORD_MAX_MESSAGE_LENGTH) -> List[str]:
    """Split a message into chunks that fit within Discord's character limit.

    Splits prefer a newline, then a sentence end, then a space, but only when
    the boundary lies past the halfway point of the chunk; otherwise the text
    is cut hard at ``max_length``.

    Args:
        content: The message content to split.
        max_length: Maximum length per chunk (default: 2000 for Discord).

    Returns:
        List of chunks, each at most ``max_length`` characters.
    """
    if len(content) <= max_length:
        return [content]

    chunks: List[str] = []
    remaining = content

    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        split_point = max_length

        newline_pos = remaining.rfind("\n", 0, max_length)
        if newline_pos > max_length * 0.5:
            split_point = newline_pos + 1
        elif "." in remaining[:max_length]:
            for i in range(max_length - 1, int(max_length * 0.5), -1):
                if remaining[i] == "." and (i + 1 >= len(remaining) or remaining[i + 1] in " \n"):
                    split_point = i + 1
                    break
        else:
            space_pos = remaining.rfind(" ", 0, max_length)
            if space_pos > max_length * 0.5:
                split_point = space_pos + 1

        chunk = remaining[:split_point].rstrip()
        if chunk:
            chunks.append(chunk)

        remaining = remaining[split_point:].lstrip()

    return chunks
