from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class LSProtocol:
    CompletionItemKind: Mapping[Optional[int], str]
    InsertTextFormat: Mapping[Optional[int], str]
    CompletionTriggerKind: Mapping[str, int]


PROTOCOL = LSProtocol(
    CompletionItemKind={
        1: "Text",
        2: "Method",
        3: "Function",
        4: "Constructor",
        5: "Field",
        6: "Variable",
        7: "Class",
        8: "Interface",
        9: "Module",
        10: "Property",
        11: "Unit",
        12: "Value",
        13: "Enum",
        14: "Keyword",
        15: "Snippet",
        16: "Color",
        17: "File",
        18: "Reference",
        19: "Folder",
        20: "EnumMember",
        21: "Constant",
        22: "Struct",
        23: "Event",
        24: "Operator",
        25: "TypeParameter",
    },
    InsertTextFormat={1: "PlainText", 2: "Snippet"},
    CompletionTriggerKind={
        "Invoked": 1,
        "TriggerCharacter": 2,
        "TriggerForIncompleteCompletions": 3,
    },
)

SNIPPET_KIND = 15


def is_snippet(fmt: Optional[int]) -> bool:
    return PROTOCOL.InsertTextFormat.get(fmt) == "Snippet"
