# core/models.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Cell = Union[str, int, float, None]

DEFAULT_CATEGORY = "General"


def cell_to_str(cell: Cell) -> str:
    """Uniform trimmed string view of one spreadsheet cell"""
    if cell is None:
        return ""
    if isinstance(cell, bool):
        return "true" if cell else "false"
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell).strip()


@dataclass
class RawTaskRow:
    """One physical spreadsheet row"""
    row: int
    cells: List[Cell] = field(default_factory=list)

    def cell(self, index: int) -> str:
        if index < 0 or index >= len(self.cells):
            return ""
        return cell_to_str(self.cells[index])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawTaskRow":
        return cls(row=int(data.get("row", 0)), cells=list(data.get("cells") or []))


@dataclass
class Task:
    """One trackable training item"""
    id: str
    section: str
    category: str
    content: str
    form: str = ""
    mentor: str = ""
    deadline: str = ""
    status: str = ""
    score: str = ""
    confirmed: bool = False
    completion_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "section": self.section,
            "category": self.category,
            "content": self.content,
            "form": self.form,
            "mentor": self.mentor,
            "deadline": self.deadline,
            "status": self.status,
            "score": self.score,
            "confirmed": self.confirmed,
            "completionDate": self.completion_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        completion = data.get("completionDate", data.get("completion_date"))
        confirmed = data.get("confirmed")
        return cls(
            id=str(data.get("id", "")),
            section=str(data.get("section", "")),
            category=str(data.get("category", "")),
            content=str(data.get("content", "")),
            form=str(data.get("form") or ""),
            mentor=str(data.get("mentor") or ""),
            deadline=str(data.get("deadline") or ""),
            status=str(data.get("status") or ""),
            score=str(data.get("score") or ""),
            confirmed=confirmed is True or confirmed == "true",
            completion_date=completion or None,
        )


@dataclass
class Section:
    """Ordered named group of tasks"""
    title: str
    tasks: List[Task] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "tasks": [task.to_dict() for task in self.tasks]}


def flatten_tasks(sections: List[Section]) -> List[Task]:
    return [task for section in sections for task in section.tasks]


__all__ = [
    "Cell",
    "DEFAULT_CATEGORY",
    "cell_to_str",
    "RawTaskRow",
    "Task",
    "Section",
    "flatten_tasks",
]
