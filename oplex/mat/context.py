from typing import Dict, Iterable, List, Optional, Tuple


class IteratorBinding:

    def __init__(self, value: int, tuple_set_name: str = None):
        self.value: int = value
        self.tuple_set_name: Optional[str] = tuple_set_name  # set whose positions the iterator walks through

    def __str__(self):
        return str(self.value)


class EvaluationContext:
    """
    Immutable overlay of iterator bindings. Each binding call returns a new context with an additional frame, so a
    context can be shared by sibling branches of a recursive expansion without any restoration step.
    """

    def __init__(self, frames: Tuple[Dict[str, IteratorBinding], ...] = None):
        self._frames: Tuple[Dict[str, IteratorBinding], ...] = frames if frames is not None else ()

    def __str__(self):
        bindings = self.get_bindings()
        return '{' + ", ".join(["{0}={1}".format(k, v) for k, v in bindings.items()]) + '}'

    def __contains__(self, name: str) -> bool:
        return self.get_binding(name) is not None

    def bind(self, name: str, value: int, tuple_set_name: str = None) -> "EvaluationContext":
        frame = {name: IteratorBinding(value, tuple_set_name)}
        return EvaluationContext(self._frames + (frame,))

    def without(self, names: Iterable[str]) -> "EvaluationContext":
        """
        Build a context in which the supplied names are unbound.
        """
        names = set(names)
        frames = []
        for frame in self._frames:
            frames.append({k: v for k, v in frame.items() if k not in names})
        return EvaluationContext(tuple(frames))

    def get_binding(self, name: str) -> Optional[IteratorBinding]:
        for frame in reversed(self._frames):
            if name in frame:
                return frame[name]
        return None

    def get_value(self, name: str) -> Optional[int]:
        binding = self.get_binding(name)
        return binding.value if binding is not None else None

    def get_bindings(self) -> Dict[str, IteratorBinding]:
        bindings = {}
        for frame in self._frames:
            bindings.update(frame)
        return bindings

    def get_symbols(self) -> List[str]:
        return list(self.get_bindings().keys())

    def is_empty(self) -> bool:
        return len(self.get_bindings()) == 0
