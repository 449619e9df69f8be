"""Tests for the prompt library service and its storage backends."""

from __future__ import annotations

import io
import json

import pytest
from rich.console import Console

from promptshelf.config import Config, load_config
from promptshelf.errors import (
    IntegrityError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from promptshelf.library import Library
from promptshelf.models import Category, LibraryData, Project, Prompt, normalize_tags
from promptshelf.reporter import (
    render_project_table,
    render_prompt_detail,
    render_prompt_table,
)
from promptshelf.storage import JsonFileBackend, MemoryBackend, open_backend


@pytest.fixture
def lib() -> Library:
    return Library(MemoryBackend())


@pytest.fixture
def seeded(lib: Library):
    project = lib.add_project("Writing", description="Blog work")
    category = lib.add_category(project.id, "Drafts")
    prompt = lib.add_prompt(
        "Outline",
        "Please outline a blog post about remote work.",
        project.id,
        category_id=category.id,
        tags=["blog", " outline ", "blog", ""],
    )
    return project, category, prompt


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

class TestProjects:
    def test_add_trims_and_defaults(self, lib):
        project = lib.add_project("  Research  ")
        assert project.name == "Research"
        assert project.color == "#3b82f6"
        assert lib.list_projects() == [project]

    def test_blank_name_rejected(self, lib):
        with pytest.raises(ValidationError):
            lib.add_project("   ")

    def test_duplicate_name_rejected(self, lib):
        lib.add_project("Research")
        with pytest.raises(ValidationError):
            lib.add_project("research")

    def test_bad_color_rejected(self, lib):
        with pytest.raises(ValidationError):
            lib.add_project("Research", color="blue")

    def test_get_by_name_or_id(self, lib):
        project = lib.add_project("Research")
        assert lib.get_project("research").id == project.id
        assert lib.get_project(project.id[:6]).id == project.id

    def test_name_wins_over_other_id_prefix(self):
        cafe = Project(name="Cafe", id="0" * 32)
        other = Project(name="Other", id="cafe111" + "0" * 25)
        lib = Library(MemoryBackend(LibraryData(projects=[cafe, other])))
        assert lib.get_project("Cafe").id == cafe.id
        assert lib.get_project("cafe").id == cafe.id
        assert lib.get_project("cafe1").id == other.id

    def test_category_name_wins_over_id_prefix(self, lib):
        project = lib.add_project("Writing")
        data = lib.backend.load()
        data.categories.append(Category(name="Add", project_id=project.id, id="1" * 32))
        data.categories.append(Category(name="Misc", project_id=project.id, id="add" + "0" * 29))
        lib.backend.save(data)
        assert lib.get_category("add").id == "1" * 32

    def test_get_unknown(self, lib):
        with pytest.raises(NotFoundError):
            lib.get_project("nope")

    def test_rename_keeps_prompts_attached(self, lib, seeded):
        project, _, prompt = seeded
        lib.update_project(project.id, name="Essays")
        assert lib.get_prompt(prompt.id).project_id == project.id
        assert [p.id for p in lib.search(project_id=project.id)] == [prompt.id]

    def test_delete_refused_while_in_use(self, lib, seeded):
        project, _, _ = seeded
        with pytest.raises(IntegrityError):
            lib.delete_project(project.id)

    def test_forced_delete_cascades(self, lib, seeded):
        project, _, _ = seeded
        assert lib.delete_project(project.id, force=True) == 1
        assert lib.list_projects() == []
        assert lib.list_categories() == []
        assert lib.search() == []


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class TestCategories:
    def test_requires_existing_project(self, lib):
        with pytest.raises(IntegrityError):
            lib.add_category("missing", "Drafts")

    def test_list_by_project(self, lib, seeded):
        project, category, _ = seeded
        other = lib.add_project("Other")
        lib.add_category(other.id, "Misc")
        assert lib.list_categories(project.id) == [category]
        assert len(lib.list_categories()) == 2

    def test_get_scoped_to_project(self, lib, seeded):
        project, category, _ = seeded
        other = lib.add_project("Other")
        lib.add_category(other.id, "Drafts")
        with pytest.raises(NotFoundError):
            lib.get_category("drafts")
        assert lib.get_category("drafts", project.id).id == category.id

    def test_delete_detaches_prompts(self, lib, seeded):
        _, category, prompt = seeded
        assert lib.delete_category(category.id) == 1
        assert lib.get_prompt(prompt.id).category_id is None

    def test_rename(self, lib, seeded):
        _, category, _ = seeded
        assert lib.update_category(category.id, name="Ideas").name == "Ideas"


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

class TestPrompts:
    def test_add_defaults(self, seeded):
        _, _, prompt = seeded
        assert prompt.version == 1
        assert prompt.usage_count == 0
        assert prompt.is_favorite is False
        assert prompt.tags == ["blog", "outline"]

    def test_blank_content_rejected(self, lib, seeded):
        project, _, _ = seeded
        with pytest.raises(ValidationError):
            lib.add_prompt("Title", "  ", project.id)

    def test_unknown_project_rejected(self, lib):
        with pytest.raises(IntegrityError):
            lib.add_prompt("Title", "Body", "missing")

    def test_category_must_belong_to_project(self, lib, seeded):
        _, category, _ = seeded
        other = lib.add_project("Other")
        with pytest.raises(IntegrityError):
            lib.add_prompt("Title", "Body", other.id, category_id=category.id)

    def test_edit_bumps_version(self, lib, seeded):
        _, _, prompt = seeded
        updated = lib.update_prompt(prompt.id, content="Please outline it again.")
        assert updated.version == 2
        assert updated.updated_at >= prompt.updated_at
        assert updated.created_at == prompt.created_at
        assert lib.update_prompt(prompt.id, title="Outline v3").version == 3

    def test_move_project_clears_category(self, lib, seeded):
        _, _, prompt = seeded
        other = lib.add_project("Other")
        moved = lib.update_prompt(prompt.id, project_id=other.id)
        assert moved.project_id == other.id
        assert moved.category_id is None

    def test_clear_category(self, lib, seeded):
        _, _, prompt = seeded
        assert lib.update_prompt(prompt.id, category_id=None).category_id is None

    def test_toggle_favorite(self, lib, seeded):
        _, _, prompt = seeded
        assert lib.toggle_favorite(prompt.id).is_favorite is True
        assert lib.toggle_favorite(prompt.id).is_favorite is False

    def test_record_use(self, lib, seeded):
        _, _, prompt = seeded
        lib.record_use(prompt.id)
        assert lib.record_use(prompt.id).usage_count == 2
        assert lib.get_prompt(prompt.id).version == 1

    def test_get_by_prefix(self, lib, seeded):
        _, _, prompt = seeded
        assert lib.get_prompt(prompt.id[:8]).id == prompt.id

    def test_delete(self, lib, seeded):
        _, _, prompt = seeded
        lib.delete_prompt(prompt.id)
        with pytest.raises(NotFoundError):
            lib.get_prompt(prompt.id)


class TestSearch:
    @pytest.fixture(autouse=True)
    def _populate(self, lib, seeded):
        self.lib = lib
        self.project, self.category, self.outline = seeded
        self.other = lib.add_project("Code")
        self.review = lib.add_prompt(
            "Code review", "Act as a senior reviewer.", self.other.id, tags=["Python"]
        )
        lib.toggle_favorite(self.review.id)

    def test_no_filters_returns_all(self):
        assert len(self.lib.search()) == 2

    def test_query_matches_title_content_and_tags(self):
        assert [p.id for p in self.lib.search("REVIEW")] == [self.review.id]
        assert [p.id for p in self.lib.search("remote work")] == [self.outline.id]
        assert [p.id for p in self.lib.search("pyth")] == [self.review.id]

    def test_filters_combine(self):
        assert self.lib.search("review", project_id=self.project.id) == []
        assert [p.id for p in self.lib.search(category_id=self.category.id)] == [
            self.outline.id
        ]

    def test_favorites_only(self):
        assert [p.id for p in self.lib.search(favorites_only=True)] == [self.review.id]

    def test_exact_tag(self):
        assert [p.id for p in self.lib.search(tag="python")] == [self.review.id]
        assert self.lib.search(tag="pyth") == []

    def test_most_recent_first(self):
        self.lib.update_prompt(self.outline.id, title="Outline again")
        assert self.lib.search()[0].id == self.outline.id


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class TestJsonFileBackend:
    def test_missing_file_loads_empty(self, tmp_path):
        data = JsonFileBackend(tmp_path / "none.json").load()
        assert data.prompts == [] and data.projects == [] and data.categories == []

    def test_round_trip_through_library(self, tmp_path):
        path = tmp_path / "nested" / "library.json"
        lib = Library(JsonFileBackend(path))
        project = lib.add_project("Writing", color="#EF4444")
        prompt = lib.add_prompt("Title", "Body text", project.id, tags=["a"])
        lib.toggle_favorite(prompt.id)

        reopened = Library(JsonFileBackend(path))
        loaded = reopened.get_prompt(prompt.id)
        assert loaded.is_favorite is True
        assert loaded.tags == ["a"]
        assert loaded.created_at == prompt.created_at
        assert reopened.get_project("writing").color == "#ef4444"

    def test_file_format(self, tmp_path):
        path = tmp_path / "library.json"
        Library(JsonFileBackend(path)).add_project("Writing")
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert set(raw) == {"projects", "categories", "prompts"}
        assert raw["projects"][0]["name"] == "Writing"

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileBackend(path).load()

    def test_malformed_records_raise(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text(json.dumps({"projects": [{"name": "x"}]}), encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileBackend(path).load()


class TestMemoryBackend:
    def test_loads_are_independent_copies(self):
        backend = MemoryBackend(LibraryData(projects=[Project(name="A")]))
        data = backend.load()
        data.projects.clear()
        assert len(backend.load().projects) == 1


class TestBackendSelection:
    def test_json(self, tmp_path):
        backend = open_backend(Config(home=tmp_path, library_path=tmp_path / "l.json"))
        assert isinstance(backend, JsonFileBackend)

    def test_memory(self, tmp_path):
        config = Config(home=tmp_path, library_path=tmp_path / "l.json", storage="memory")
        assert isinstance(open_backend(config), MemoryBackend)

    def test_unknown(self, tmp_path):
        config = Config(home=tmp_path, library_path=tmp_path / "l.json", storage="cloud")
        with pytest.raises(StorageError):
            open_backend(config)

    def test_load_config_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROMPTSHELF_HOME", str(tmp_path))
        monkeypatch.delenv("PROMPTSHELF_LIBRARY", raising=False)
        monkeypatch.setenv("PROMPTSHELF_STORAGE", " Memory ")
        config = load_config()
        assert config.library_path == tmp_path / "library.json"
        assert config.storage == "memory"


class TestModels:
    def test_normalize_tags(self):
        assert normalize_tags([" a", "b", "a ", "", "  "]) == ["a", "b"]

    def test_prompt_dict_round_trip(self):
        prompt = Prompt(title="T", content="C", project_id="p", tags=["x"], usage_count=3)
        assert Prompt.from_dict(prompt.to_dict()) == prompt


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class TestListingRenderers:
    """User text is shown literally, square brackets included."""

    @pytest.fixture(autouse=True)
    def _console(self):
        self.console = Console(file=io.StringIO(), record=True, width=200)
        self.project = Project(name="[bold]Team", description="Owns [/] docs")
        self.category = Category(name="[red]Drafts", project_id=self.project.id)
        self.prompt = Prompt(
            title="Fix [/] now",
            content="Summarize [the text] in 3 bullets",
            project_id=self.project.id,
            category_id=self.category.id,
            tags=["[x]"],
        )

    def test_prompt_detail_keeps_brackets(self):
        render_prompt_detail(self.prompt, self.project, self.category, console=self.console)
        output = self.console.export_text()
        assert "Summarize [the text] in 3 bullets" in output
        assert "Fix [/] now" in output
        assert "[bold]Team / [red]Drafts" in output
        assert "Tags: [x]" in output

    def test_prompt_table_keeps_brackets(self):
        render_prompt_table(
            [self.prompt], [self.project], [self.category], console=self.console
        )
        output = self.console.export_text()
        assert "Fix [/] now" in output
        assert "[bold]Team" in output
        assert "[red]Drafts" in output

    def test_project_table_keeps_brackets(self):
        render_project_table(
            [self.project], [self.category], {self.project.id: 1}, console=self.console
        )
        output = self.console.export_text()
        assert "[bold]Team" in output
        assert "Owns [/] docs" in output
