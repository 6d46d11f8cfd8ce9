"""Common test helpers."""


def drain(queue):
    """All events published to ``queue`` so far, in order."""
    collected = []
    while not queue.empty():
        collected.append(queue.get_nowait())
    return collected
