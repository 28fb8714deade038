"""Blog publishing workflow."""

from conftest import API


def _post(client, headers, **overrides):
    payload = {
        "title": "Rankings explained",
        "slug": "rankings-explained",
        "content": "How the index works.",
        "excerpt": "A primer on the index",
        "tags": ["methodology", "rankings"],
        "status": "published",
    }
    payload.update(overrides)
    return client.post(f"{API}/blog", json=payload, headers=headers)


class TestBlogPublishing:
    """Creation, visibility and editing."""

    def test_published_post_is_public(self, client, editor_headers):
        response = _post(client, editor_headers)
        assert response.status_code == 201
        assert response.json()["published_at"] is not None

        post = client.get(f"{API}/blog/rankings-explained").json()
        assert post["content"] == "How the index works."
        assert post["author_name"] == "Editor"

    def test_draft_is_hidden(self, client, editor_headers):
        response = _post(client, editor_headers, slug="draft-post", status="draft")
        assert response.json()["published_at"] is None

        assert client.get(f"{API}/blog/draft-post").status_code == 404
        assert client.get(f"{API}/blog").json()["posts"] == []

    def test_duplicate_slug(self, client, editor_headers):
        _post(client, editor_headers)
        assert _post(client, editor_headers, title="Other").status_code == 400

    def test_list_filters_by_tag_and_search(self, client, editor_headers):
        _post(client, editor_headers)
        _post(client, editor_headers, slug="platform-news", title="Platform news", tags=["news"], excerpt=None)

        by_tag = client.get(f"{API}/blog", params={"tag": "news"}).json()
        assert [item["slug"] for item in by_tag["posts"]] == ["platform-news"]

        by_search = client.get(f"{API}/blog", params={"search": "PRIMER"}).json()
        assert [item["slug"] for item in by_search["posts"]] == ["rankings-explained"]

        everything = client.get(f"{API}/blog").json()
        assert everything["pagination"]["total_count"] == 2

    def test_publishing_a_draft_sets_published_at(self, client, editor_headers):
        post_id = _post(client, editor_headers, slug="later", status="draft").json()["id"]

        response = client.put(f"{API}/blog/{post_id}", json={"status": "published"}, headers=editor_headers)

        assert response.status_code == 200
        assert response.json()["published_at"] is not None
        assert client.get(f"{API}/blog/later").status_code == 200

    def test_slug_collision_on_update(self, client, editor_headers):
        _post(client, editor_headers)
        post_id = _post(client, editor_headers, slug="second").json()["id"]

        response = client.put(f"{API}/blog/{post_id}", json={"slug": "rankings-explained"}, headers=editor_headers)
        assert response.status_code == 400

    def test_admin_listing_by_status(self, client, editor_headers):
        _post(client, editor_headers)
        _post(client, editor_headers, slug="draft-post", status="draft")

        response = client.get(f"{API}/blog/admin/all", params={"status": "draft"}, headers=editor_headers)
        assert [item["slug"] for item in response.json()] == ["draft-post"]
        assert client.get(f"{API}/blog/admin/all").status_code == 401


class TestBlogDeletion:
    """Deleting needs delete_content."""

    def test_editor_cannot_delete(self, client, editor_headers):
        post_id = _post(client, editor_headers).json()["id"]
        assert client.delete(f"{API}/blog/{post_id}", headers=editor_headers).status_code == 403

    def test_admin_deletes(self, client, editor_headers, admin_headers):
        post_id = _post(client, editor_headers).json()["id"]

        assert client.delete(f"{API}/blog/{post_id}", headers=admin_headers).status_code == 200
        assert client.get(f"{API}/blog/rankings-explained").status_code == 404
        assert client.delete(f"{API}/blog/{post_id}", headers=admin_headers).status_code == 404
