from typing import Dict, Iterable, Iterator, List, Optional
from pipeline.state import LeadershipContact


class SelectionSet:
    """
    Contact emails chosen for outreach.

    Independent of the filter view: a contact stays selected while filtered
    out. Insertion order is kept so ``first()`` is the earliest selection.
    """

    def __init__(self, emails: Optional[Iterable[str]] = None):
        self._emails: Dict[str, None] = dict.fromkeys(emails or [])

    def __contains__(self, email: object) -> bool:
        return email in self._emails

    def __len__(self) -> int:
        return len(self._emails)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._emails))

    def toggle(self, email: str) -> bool:
        """Add ``email`` if absent, remove it if present. Returns the new membership."""
        if email in self._emails:
            del self._emails[email]
            return False
        self._emails[email] = None
        return True

    def select_all_visible(self, visible: List[LeadershipContact]) -> None:
        """Replace the selection with exactly the visible contacts."""
        self._emails = dict.fromkeys(contact["email"] for contact in visible)

    def clear_all(self) -> None:
        self._emails.clear()

    def set_all_visible(self, visible: List[LeadershipContact], checked: bool) -> None:
        """Header checkbox: checking selects the view, unchecking clears everything."""
        if checked:
            self.select_all_visible(visible)
        else:
            self.clear_all()

    def all_visible_selected(self, visible: List[LeadershipContact]) -> bool:
        """Header checkbox state; compares sizes only, as the table does."""
        return len(self._emails) == len(visible)

    def first(self) -> Optional[str]:
        return next(iter(self._emails), None)

    def prune(self, valid_emails: Iterable[str]) -> List[str]:
        """Drop emails not in ``valid_emails``; returns the dropped ones."""
        keep = set(valid_emails)
        dropped = [email for email in self._emails if email not in keep]
        for email in dropped:
            del self._emails[email]
        return dropped

    def to_list(self) -> List[str]:
        return list(self._emails)
