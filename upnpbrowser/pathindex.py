from .const import ROOT_CONTAINER_ID
from .util import _getLogger


class PathIndex(object):
    """
    Maps navigation paths (sequences of container titles) to the server's
    container IDs. The empty path is always the root container "0". Entries
    are learnt as containers show up in browse results and are only dropped
    by `reset()`.
    """

    def __init__(self, logger=None):
        self._log = logger or _getLogger("PathIndex")
        self._ids = {(): ROOT_CONTAINER_ID}

    def __len__(self):
        return len(self._ids)

    def __contains__(self, path):
        return tuple(path) in self._ids

    def resolve(self, path):
        """
        Return the container ID for `path`.

        If the full path isn't known, walk it one segment at a time; as soon
        as a prefix is missing the root ID is returned instead. Paths below a
        container that was never browsed therefore resolve to the root.
        """
        path = tuple(path)
        try:
            return self._ids[path]
        except KeyError:
            pass
        container_id = ROOT_CONTAINER_ID
        for depth in range(1, len(path) + 1):
            prefix = path[:depth]
            if prefix not in self._ids:
                self._log.debug(
                    "No container ID for %r (missing %r), using root", path, prefix)
                return ROOT_CONTAINER_ID
            container_id = self._ids[prefix]
        return container_id

    def extend(self, parent_path, title, container_id):
        """Record that `parent_path` + `title` is container `container_id`."""
        path = tuple(parent_path) + (title,)
        previous = self._ids.get(path)
        if previous is not None and previous != container_id:
            self._log.debug(
                "Container %r moved from %r to %r", path, previous, container_id)
        self._ids[path] = container_id

    def reset(self):
        """Forget everything but the root, e.g. when the device list changes."""
        self._ids = {(): ROOT_CONTAINER_ID}
