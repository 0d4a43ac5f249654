import json
from typing import Any


class TrackerJSONEncoder(json.JSONEncoder):
    """
    JSON Encoder for stored artifacts.

    Contracts (event logs, events, errors) serialize through to_dict().
    Raw snapshot payloads are already plain JSON.
    """

    def default(self, obj: Any) -> Any:
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        return super().default(obj)


def dumps(obj: Any) -> str:
    """Serialize an artifact. Output is byte-stable for equal inputs."""
    return json.dumps(obj, cls=TrackerJSONEncoder, indent=2, ensure_ascii=False)
