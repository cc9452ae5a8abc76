import threading


class StringIDMapping:
    """Assigns stable numeric ids to opaque string identifiers.

    Ids are handed out sequentially in first-seen order, the same way the
    interaction matrix builders enumerate users and items.  The mapping only
    grows: an id, once assigned, is never reassigned.  add() is safe to call
    from several ingestion threads at once.
    """

    def __init__(self):
        self.string_to_id = {}   # dict: string id -> numeric id
        self.id_to_string = []   # list: numeric id -> string id
        self._lock = threading.Lock()

    def add(self, key):
        """Return the id for key, assigning the next free one if unseen."""
        numeric_id = self.string_to_id.get(key)
        if numeric_id is not None:
            return numeric_id
        with self._lock:
            # Another thread may have assigned it while we waited
            numeric_id = self.string_to_id.get(key)
            if numeric_id is None:
                numeric_id = len(self.id_to_string)
                self.id_to_string.append(key)
                self.string_to_id[key] = numeric_id
            return numeric_id

    def get(self, key):
        return self.string_to_id.get(key)

    def to_string(self, numeric_id):
        if not 0 <= numeric_id < len(self.id_to_string):
            raise KeyError(numeric_id)
        return self.id_to_string[numeric_id]

    def __contains__(self, key):
        return key in self.string_to_id

    def __len__(self):
        return len(self.id_to_string)

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()
