"""notes-client: session and notification core for the notes app client.

Built around an explicit session state machine and a timed notification
queue, with a strict layered architecture.
"""

from notes_client.version import __version__

__all__: list[str] = ["__version__"]
