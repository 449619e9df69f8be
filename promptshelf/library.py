"""Prompt library operations.

The Library wraps a storage backend and implements the create, edit,
delete and search operations for projects, categories and prompts. Every
mutating call loads the current snapshot, applies the change, checks the
references and saves the snapshot back.

Reference rules:
    - A category belongs to an existing project.
    - A prompt belongs to an existing project and, optionally, to one of
      that project's categories.
    - Records reference each other by id, so renames never break links.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from promptshelf.errors import IntegrityError, NotFoundError, ValidationError
from promptshelf.models import (
    DEFAULT_COLOR,
    HEX_COLOR_RE,
    Category,
    LibraryData,
    Project,
    Prompt,
    normalize_tags,
    utcnow,
)
from promptshelf.storage import StorageBackend

logger = logging.getLogger(__name__)

# Marker for "argument not given" where None is a meaningful value
_UNSET = object()


def _require_text(value: str, field_name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field_name} must not be empty.")
    return value


def _check_color(color: str) -> str:
    color = color.strip()
    if not HEX_COLOR_RE.match(color):
        raise ValidationError(f"Invalid color '{color}'. Use a hex value like {DEFAULT_COLOR}.")
    return color.lower()


def _match_one(records: list, ref: str, kind: str, name_attr: Optional[str] = "name"):
    """Find a record by exact id, case-insensitive name or unique id prefix.

    Names win over id prefixes, so a name made of hex letters stays
    reachable whatever the other records' ids look like.
    """
    ref = ref.strip()
    if not ref:
        raise NotFoundError(f"No {kind} given.")

    for rec in records:
        if rec.id == ref:
            return rec

    matches = []
    if name_attr:
        matches = [
            rec for rec in records if getattr(rec, name_attr).lower() == ref.lower()
        ]
    if not matches:
        matches = [rec for rec in records if rec.id.startswith(ref.lower())]

    if not matches:
        raise NotFoundError(f"No {kind} matches '{ref}'.")
    if len(matches) > 1:
        raise NotFoundError(f"'{ref}' matches {len(matches)} {kind}s; be more specific.")
    return matches[0]


class Library:
    """Prompt library backed by a StorageBackend."""

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    # -- internals ----------------------------------------------------------

    def _load(self) -> LibraryData:
        return self.backend.load()

    def _save(self, data: LibraryData) -> None:
        self.backend.save(data)

    @staticmethod
    def _project(data: LibraryData, project_id: str) -> Project:
        for project in data.projects:
            if project.id == project_id:
                return project
        raise NotFoundError(f"Project '{project_id}' does not exist.")

    @staticmethod
    def _category(data: LibraryData, category_id: str) -> Category:
        for category in data.categories:
            if category.id == category_id:
                return category
        raise NotFoundError(f"Category '{category_id}' does not exist.")

    @staticmethod
    def _prompt(data: LibraryData, prompt_id: str) -> Prompt:
        return _match_one(data.prompts, prompt_id, "prompt", name_attr=None)

    def _check_prompt_refs(
        self, data: LibraryData, project_id: str, category_id: Optional[str]
    ) -> None:
        try:
            self._project(data, project_id)
        except NotFoundError:
            raise IntegrityError(f"Project '{project_id}' does not exist.")
        if category_id is None:
            return
        try:
            category = self._category(data, category_id)
        except NotFoundError:
            raise IntegrityError(f"Category '{category_id}' does not exist.")
        if category.project_id != project_id:
            raise IntegrityError(
                f"Category '{category.name}' does not belong to the prompt's project."
            )

    @staticmethod
    def _check_unique_project_name(
        data: LibraryData, name: str, exclude_id: Optional[str] = None
    ) -> None:
        for project in data.projects:
            if project.id != exclude_id and project.name.lower() == name.lower():
                raise ValidationError(f"A project named '{name}' already exists.")

    # -- projects -----------------------------------------------------------

    def add_project(
        self, name: str, description: str = "", color: str = DEFAULT_COLOR
    ) -> Project:
        data = self._load()
        name = _require_text(name, "Project name")
        self._check_unique_project_name(data, name)
        project = Project(
            name=name, description=description.strip(), color=_check_color(color)
        )
        data.projects.append(project)
        self._save(data)
        logger.info("Added project %s (%s)", project.name, project.id)
        return project

    def update_project(
        self,
        project_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Project:
        data = self._load()
        project = self._project(data, project_id)
        if name is not None:
            name = _require_text(name, "Project name")
            self._check_unique_project_name(data, name, exclude_id=project.id)
            project.name = name
        if description is not None:
            project.description = description.strip()
        if color is not None:
            project.color = _check_color(color)
        self._save(data)
        return project

    def delete_project(self, project_id: str, force: bool = False) -> int:
        """Delete a project and its categories.

        Refuses while prompts still belong to the project, unless ``force``
        is set, in which case those prompts are deleted too. Returns the
        number of prompts removed.
        """
        data = self._load()
        project = self._project(data, project_id)
        owned = [p for p in data.prompts if p.project_id == project.id]
        if owned and not force:
            raise IntegrityError(
                f"Project '{project.name}' still has {len(owned)} prompt(s). "
                "Move or delete them first, or force the deletion."
            )
        data.prompts = [p for p in data.prompts if p.project_id != project.id]
        data.categories = [c for c in data.categories if c.project_id != project.id]
        data.projects = [p for p in data.projects if p.id != project.id]
        self._save(data)
        logger.info("Deleted project %s and %d prompt(s)", project.id, len(owned))
        return len(owned)

    def list_projects(self) -> list[Project]:
        return sorted(self._load().projects, key=lambda p: p.name.lower())

    def get_project(self, ref: str) -> Project:
        """Look up a project by id, id prefix or name."""
        return _match_one(self._load().projects, ref, "project")

    # -- categories ---------------------------------------------------------

    def add_category(self, project_id: str, name: str, description: str = "") -> Category:
        data = self._load()
        name = _require_text(name, "Category name")
        try:
            self._project(data, project_id)
        except NotFoundError:
            raise IntegrityError(f"Project '{project_id}' does not exist.")
        category = Category(name=name, project_id=project_id, description=description.strip())
        data.categories.append(category)
        self._save(data)
        logger.info("Added category %s (%s)", category.name, category.id)
        return category

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Category:
        data = self._load()
        category = self._category(data, category_id)
        if name is not None:
            category.name = _require_text(name, "Category name")
        if description is not None:
            category.description = description.strip()
        self._save(data)
        return category

    def delete_category(self, category_id: str) -> int:
        """Delete a category and detach its prompts. Returns how many were detached."""
        data = self._load()
        category = self._category(data, category_id)
        detached = 0
        for prompt in data.prompts:
            if prompt.category_id == category.id:
                prompt.category_id = None
                detached += 1
        data.categories = [c for c in data.categories if c.id != category.id]
        self._save(data)
        return detached

    def list_categories(self, project_id: Optional[str] = None) -> list[Category]:
        categories = self._load().categories
        if project_id is not None:
            categories = [c for c in categories if c.project_id == project_id]
        return sorted(categories, key=lambda c: c.name.lower())

    def get_category(self, ref: str, project_id: Optional[str] = None) -> Category:
        """Look up a category by id, id prefix or name, optionally within one project."""
        return _match_one(self.list_categories(project_id), ref, "category")

    # -- prompts ------------------------------------------------------------

    def add_prompt(
        self,
        title: str,
        content: str,
        project_id: str,
        category_id: Optional[str] = None,
        tags: Iterable[str] = (),
    ) -> Prompt:
        data = self._load()
        title = _require_text(title, "Title")
        content = _require_text(content, "Content")
        self._check_prompt_refs(data, project_id, category_id)
        prompt = Prompt(
            title=title,
            content=content,
            project_id=project_id,
            category_id=category_id,
            tags=normalize_tags(tags),
        )
        data.prompts.append(prompt)
        self._save(data)
        logger.info("Added prompt %s (%s)", prompt.title, prompt.id)
        return prompt

    def update_prompt(
        self,
        prompt_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        project_id: Optional[str] = None,
        category_id=_UNSET,
        tags: Optional[Iterable[str]] = None,
    ) -> Prompt:
        """Edit a prompt. Every edit bumps its version and ``updated_at``.

        Pass ``category_id=None`` to clear the category. Moving a prompt to
        another project without naming a category clears the old one.
        """
        data = self._load()
        prompt = self._prompt(data, prompt_id)

        new_project = project_id if project_id is not None else prompt.project_id
        if category_id is _UNSET:
            new_category = prompt.category_id if new_project == prompt.project_id else None
        else:
            new_category = category_id
        self._check_prompt_refs(data, new_project, new_category)

        if title is not None:
            prompt.title = _require_text(title, "Title")
        if content is not None:
            prompt.content = _require_text(content, "Content")
        if tags is not None:
            prompt.tags = normalize_tags(tags)
        prompt.project_id = new_project
        prompt.category_id = new_category
        prompt.version += 1
        prompt.updated_at = utcnow()
        self._save(data)
        logger.info("Updated prompt %s to version %d", prompt.id, prompt.version)
        return prompt

    def delete_prompt(self, prompt_id: str) -> Prompt:
        data = self._load()
        prompt = self._prompt(data, prompt_id)
        data.prompts = [p for p in data.prompts if p.id != prompt.id]
        self._save(data)
        logger.info("Deleted prompt %s", prompt.id)
        return prompt

    def get_prompt(self, prompt_id: str) -> Prompt:
        """Look up a prompt by id or unique id prefix."""
        return self._prompt(self._load(), prompt_id)

    def toggle_favorite(self, prompt_id: str) -> Prompt:
        data = self._load()
        prompt = self._prompt(data, prompt_id)
        prompt.is_favorite = not prompt.is_favorite
        self._save(data)
        return prompt

    def record_use(self, prompt_id: str) -> Prompt:
        """Count one use of a prompt (e.g. it was copied or printed for use)."""
        data = self._load()
        prompt = self._prompt(data, prompt_id)
        prompt.usage_count += 1
        self._save(data)
        return prompt

    def search(
        self,
        query: str = "",
        project_id: Optional[str] = None,
        category_id: Optional[str] = None,
        favorites_only: bool = False,
        tag: Optional[str] = None,
    ) -> list[Prompt]:
        """Filter prompts; every given filter must match.

        ``query`` is a case-insensitive substring matched against the
        title, the content and each tag. Results are most recently
        updated first.
        """
        needle = query.strip().lower()
        tag_lower = tag.strip().lower() if tag else None

        def matches(prompt: Prompt) -> bool:
            if needle and not (
                needle in prompt.title.lower()
                or needle in prompt.content.lower()
                or any(needle in t.lower() for t in prompt.tags)
            ):
                return False
            if project_id is not None and prompt.project_id != project_id:
                return False
            if category_id is not None and prompt.category_id != category_id:
                return False
            if favorites_only and not prompt.is_favorite:
                return False
            if tag_lower and tag_lower not in (t.lower() for t in prompt.tags):
                return False
            return True

        found = [p for p in self._load().prompts if matches(p)]
        return sorted(found, key=lambda p: p.updated_at, reverse=True)
