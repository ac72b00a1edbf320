import datetime as dt

import pytest
import yaml

from notion_cms import APIError
from site_sync import Generator, Settings, Site
from site_sync.generator import convert_doc_to_properties, convert_value_to_notion_property

POSTS = {
    "database_env": "POSTS_DB",
    "data_file": "posts.yml",
    "sort_by": "order",
    "properties": [{"name": "Title", "type": "title"}, {"name": "Order", "type": "number"}],
}

NOTION_RESPONSE = {
    "results": [
        {
            "id": "page-1",
            "created_time": "2024-01-01T00:00:00Z",
            "last_edited_time": "2024-01-02T00:00:00Z",
            "properties": {"Title": {"type": "title", "title": [{"plain_text": "Test Post"}]}},
        }
    ]
}


class FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.queried = []

    def query_database(self, database_id):
        self.queried.append(database_id)
        if self.error:
            raise self.error
        return self.response


def make_site(tmp_path, collections, **notion):
    return Site(tmp_path, config={"notion": {"collections": collections, **notion}})


def make_generator(client=None, token="test_token"):
    factory_calls = []

    def factory(t):
        factory_calls.append(t)
        if isinstance(client, Exception):
            raise client
        return client

    generator = Generator(Settings(notion_token=token), client_factory=factory)
    generator.factory_calls = factory_calls
    return generator


def write_doc(tmp_path, collection, name, front_matter):
    directory = tmp_path / f"_{collection}"
    directory.mkdir(exist_ok=True)
    (directory / name).write_text("---\n" + yaml.safe_dump(front_matter) + "---\nbody\n", encoding="utf-8")


def test_disabled_plugin_does_nothing(tmp_path, logs):
    generator = make_generator(FakeClient(NOTION_RESPONSE))
    generator.generate(make_site(tmp_path, {"posts": POSTS}, enabled=False))
    assert any("Plugin disabled in configuration" in m for m in logs)
    assert generator.factory_calls == []
    assert not (tmp_path / "_data").exists()


def test_missing_token_uses_fallback_for_every_collection(tmp_path, logs):
    site = make_site(tmp_path, {"posts": POSTS, "projects": {"data_file": "projects.yml"}})
    make_generator(token=None).generate(site)
    assert any("No NOTION_TOKEN found, using collections fallback" in m for m in logs)
    assert site.data == {"posts": [], "projects": []}
    assert (tmp_path / "_data" / "posts.yml").exists()
    assert (tmp_path / "_data" / "projects.yml").exists()


def test_fetches_organizes_and_writes(tmp_path, logs, monkeypatch):
    monkeypatch.setenv("POSTS_DB", "db_123")
    client = FakeClient(NOTION_RESPONSE)
    generator = make_generator(client)
    site = make_site(tmp_path, {"posts": POSTS})

    generator.generate(site)

    assert generator.factory_calls == ["test_token"]
    assert client.queried == ["db_123"]
    assert site.data["posts"][0]["title"] == "Test Post"
    assert any("posts fetched (1 items)" in m for m in logs)
    assert any("All data fetched successfully" in m for m in logs)
    content = (tmp_path / "_data" / "posts.yml").read_text(encoding="utf-8")
    assert "title: Test Post" in content


@pytest.mark.parametrize("database_id", [None, "", "example_db_123"])
def test_placeholder_database_id_uses_fallback(tmp_path, logs, monkeypatch, database_id):
    if database_id is None:
        monkeypatch.delenv("POSTS_DB", raising=False)
    else:
        monkeypatch.setenv("POSTS_DB", database_id)
    client = FakeClient(NOTION_RESPONSE)
    make_generator(client).generate(make_site(tmp_path, {"posts": POSTS}))
    assert client.queried == []
    assert any("No POSTS_DB found, using fallback for posts" in m for m in logs)


def test_empty_results_use_fallback(tmp_path, logs, monkeypatch):
    monkeypatch.setenv("POSTS_DB", "db_123")
    site = make_site(tmp_path, {"posts": POSTS})
    make_generator(FakeClient({"results": []})).generate(site)
    assert any("No data found for posts, using fallback" in m for m in logs)
    assert site.data["posts"] == []


def test_api_error_is_logged_per_collection(tmp_path, logs, monkeypatch):
    monkeypatch.setenv("POSTS_DB", "db_123")
    site = make_site(tmp_path, {"posts": POSTS})
    make_generator(FakeClient(error=APIError("Rate limit exceeded (429 Too Many Requests)"))).generate(site)
    assert any("Error fetching posts: Rate limit exceeded" in m for m in logs)
    assert site.data["posts"] == []


def test_client_failure_falls_back_for_all(tmp_path, logs):
    site = make_site(tmp_path, {"posts": POSTS})
    make_generator(RuntimeError("Connection failed")).generate(site)
    assert any("Error fetching data: Connection failed" in m for m in logs)
    assert any("Falling back to collections" in m for m in logs)
    assert site.data["posts"] == []


def test_grouped_data_counts_items(tmp_path, logs, monkeypatch):
    monkeypatch.setenv("TEST_DB", "db_123")
    response = {
        "results": [
            {
                "id": f"page-{i}",
                "properties": {
                    "Title": {"type": "title", "title": [{"plain_text": f"T{i}"}]},
                    "Category": {"type": "select", "select": {"name": "Tech" if i else "Life"}},
                },
            }
            for i in range(3)
        ]
    }
    config = {
        "database_env": "TEST_DB",
        "data_file": "test.yml",
        "organizer": "grouped_by",
        "group_by": "category",
        "properties": [{"name": "Title", "type": "title"}, {"name": "Category", "type": "select"}],
    }
    site = make_site(tmp_path, {"test_collection": config})
    make_generator(FakeClient(response)).generate(site)
    assert list(site.data["test"]) == ["Life", "Tech"]
    assert any("test_collection fetched (3 items)" in m for m in logs)


def test_collection_fallback_uses_local_documents(tmp_path, logs):
    write_doc(tmp_path, "posts", "one.md", {"title": "Post 1", "order": 2, "date": dt.date(2024, 1, 1)})
    write_doc(tmp_path, "posts", "two.md", {"title": "Post 2", "order": 1})
    write_doc(tmp_path, "posts", "untitled.md", {"order": 3})
    site = make_site(tmp_path, {"posts": POSTS})

    make_generator(token=None).generate(site)

    posts = site.data["posts"]
    assert [p["title"] for p in posts] == ["Post 2", "Post 1"]
    assert posts[1]["id"] == "/posts/one"
    assert posts[1]["created_time"] == "2024-01-01"
    assert any("posts fallback applied (2 items)" in m for m in logs)


def test_fallback_key_follows_data_file(tmp_path):
    site = make_site(tmp_path, {"nonexistent": {"data_file": "posts.yaml", "properties": []}})
    make_generator(token=None).generate(site)
    assert site.data["posts"] == []
    assert (tmp_path / "_data" / "posts.yaml").exists()


def test_create_data_file_header_and_skip_when_unchanged(tmp_path, logs):
    generator = make_generator(token=None)
    generator.generate(make_site(tmp_path, {}))

    generator.create_data_file([{"title": "Test"}], "test.yml", "test")
    path = tmp_path / "_data" / "test.yml"
    content = path.read_text(encoding="utf-8")
    assert content.startswith("# Test data imported from Notion\n")
    assert "# Auto-generated by notion-site-data" in content
    assert "# Last updated:" in content
    assert "- title: Test" in content
    assert yaml.safe_load(content) == [{"title": "Test"}]

    generator.create_data_file([{"title": "Test"}], "test.yml", "test")
    assert any("test data unchanged, skipping" in m for m in logs)
    assert path.read_text(encoding="utf-8") == content

    generator.create_data_file([{"title": "Updated"}], "test.yml", "test")
    assert any("test written to _data/test.yml" in m for m in logs)
    assert "title: Updated" in path.read_text(encoding="utf-8")


def test_convert_doc_to_properties_key_lookup():
    instructions = [
        {"name": "Title", "type": "title"},
        {"name": "Description", "type": "rich_text", "key": "desc"},
        {"name": "Order", "type": "number"},
    ]
    props = convert_doc_to_properties({"desc": "Custom", "Title": "Original", "order": None}, instructions)
    assert props["Title"]["title"][0]["plain_text"] == "Original"
    assert props["Description"]["rich_text"][0]["plain_text"] == "Custom"
    assert "Order" not in props

    props = convert_doc_to_properties({"title": "Lowercase"}, instructions)
    assert props["Title"]["title"][0]["plain_text"] == "Lowercase"


@pytest.mark.parametrize(
    "value, prop_type, field, expected",
    [
        (123, "title", "title", [{"plain_text": "123"}]),
        ("42", "number", "number", 42),
        ("2.5", "number", "number", 2.5),
        ("yes", "checkbox", "checkbox", True),
        ("false", "checkbox", "checkbox", False),
        (False, "checkbox", "checkbox", False),
        (dt.date(2024, 1, 1), "date", "date", {"start": "2024-01-01"}),
        ("Option A", "select", "select", {"name": "Option A"}),
        (["Tag1", "Tag2"], "multi_select", "multi_select", [{"name": "Tag1"}, {"name": "Tag2"}]),
        ("Solo", "multi_select", "multi_select", [{"name": "Solo"}]),
        ("https://example.com", "url", "url", "https://example.com"),
        ("unknown", "mystery", "rich_text", [{"plain_text": "unknown"}]),
    ],
)
def test_convert_value_to_notion_property(value, prop_type, field, expected):
    prop = convert_value_to_notion_property(value, prop_type)
    assert prop[field] == expected
    assert prop["type"] == (prop_type if prop_type != "mystery" else "rich_text")


def test_fallback_nested_on_date_field(tmp_path, logs):
    write_doc(tmp_path, "events", "launch.md", {"title": "Launch", "when": dt.date(2024, 1, 1)})
    config = {
        "organizer": "nested",
        "parent_field": "when",
        "properties": [{"name": "Title", "type": "title"}, {"name": "When", "type": "date"}],
    }
    site = make_site(tmp_path, {"events": config})
    make_generator(token=None).generate(site)
    assert [e["title"] for e in site.data["events"]] == ["Launch"]
    assert any("events fallback applied (1 items)" in m for m in logs)


def test_failing_fallback_is_logged_and_other_collections_continue(tmp_path, logs, monkeypatch):
    site = make_site(tmp_path, {"posts": POSTS, "projects": {"data_file": "projects.yml"}})
    read_collection = site.collection

    def collection(name):
        if name == "posts":
            raise RuntimeError("disk gone")
        return read_collection(name)

    monkeypatch.setattr(site, "collection", collection)
    make_generator(RuntimeError("Connection failed")).generate(site)

    assert any("Fallback failed for posts: disk gone" in m for m in logs)
    assert "posts" not in site.data
    assert site.data["projects"] == []
