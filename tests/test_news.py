"""뉴스 API 테스트 — 기사 작성, 목록, 조회, 수정, 게시/고정, 통계.

News API tests — Article authoring, listing, reading, editing,
publishing, pinning and stats.
"""

from httpx import AsyncClient

from tests.conftest import auth_header
from yggdrasil.utils.slug import slugify

ARTICLES = "/api/news/articles"


async def _create(client: AsyncClient, token: str, **overrides):
    payload = {
        "title": "Campus Opening",
        "content": "The new campus opens on Monday.",
        "category": "announcements",
        "tags": ["Campus", "news", "campus"],
        "isPublished": True,
    }
    payload.update(overrides)
    res = await client.post(f"{ARTICLES}/", json=payload, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()["data"]


class TestSlugify:
    """슬러그 생성 테스트."""

    def test_basic(self):
        assert slugify("Hello,  World_ 2024!") == "hello-world-2024"

    def test_trims_separators(self):
        assert slugify("  --Already-Sluggy--  ") == "already-sluggy"

    def test_unicode_letters_kept(self):
        assert slugify("Café Ouvert") == "café-ouvert"

    def test_only_symbols(self):
        assert slugify("!!!") == ""


class TestCreateArticle:
    """기사 작성 테스트."""

    async def test_create_published(self, client: AsyncClient, staff_user, staff_token):
        data = await _create(client, staff_token)
        assert data["slug"] == "campus-opening"
        assert data["tags"] == ["campus", "news"]
        assert data["authorName"] == "Sam Staff"
        assert data["authorRole"] == "staff"
        assert data["publishedAt"] is not None
        assert data["viewCount"] == 0

    async def test_create_draft_has_no_published_at(self, client: AsyncClient, admin_token):
        data = await _create(client, admin_token, isPublished=False)
        assert data["isPublished"] is False
        assert data["publishedAt"] is None

    async def test_duplicate_title_gets_suffix(self, client: AsyncClient, admin_token):
        """같은 제목은 무작위 접미사가 붙은 슬러그."""
        first = await _create(client, admin_token)
        second = await _create(client, admin_token)
        assert first["slug"] == "campus-opening"
        assert second["slug"].startswith("campus-opening-")
        assert len(second["slug"]) == len("campus-opening-") + 6

    async def test_suffix_redrawn_until_free(self, client: AsyncClient, admin_token, monkeypatch):
        """접미사까지 겹치면 다시 뽑음."""
        suffixes = iter(["abc123", "abc123", "zzz999"])
        monkeypatch.setattr("yggdrasil.services.news_service.random_suffix", lambda: next(suffixes))

        slugs = [(await _create(client, admin_token))["slug"] for _ in range(3)]
        assert slugs == ["campus-opening", "campus-opening-abc123", "campus-opening-zzz999"]

    async def test_teacher_cannot_create(self, client: AsyncClient, teacher_token):
        res = await client.post(f"{ARTICLES}/", json={"title": "Hi", "content": "Body"},
                                headers=auth_header(teacher_token))
        assert res.status_code == 403

    async def test_blank_title_rejected(self, client: AsyncClient, admin_token):
        res = await client.post(f"{ARTICLES}/", json={"title": "   ", "content": "Body"},
                                headers=auth_header(admin_token))
        assert res.status_code == 400

    async def test_symbol_title_rejected(self, client: AsyncClient, admin_token):
        """슬러그가 비는 제목 400."""
        res = await client.post(f"{ARTICLES}/", json={"title": "???", "content": "Body"},
                                headers=auth_header(admin_token))
        assert res.status_code == 400


class TestListArticles:
    """기사 목록 테스트."""

    async def test_anonymous_sees_published_only(self, client: AsyncClient, admin_token):
        await _create(client, admin_token, title="Visible")
        await _create(client, admin_token, title="Hidden", isPublished=False)

        res = await client.get(f"{ARTICLES}/", params={"published": "false"})
        assert res.status_code == 200
        titles = [a["title"] for a in res.json()["data"]]
        assert titles == ["Visible"]

    async def test_manager_lists_drafts(self, client: AsyncClient, admin_token):
        await _create(client, admin_token, title="Visible")
        await _create(client, admin_token, title="Hidden", isPublished=False)

        res = await client.get(f"{ARTICLES}/", params={"published": "false"}, headers=auth_header(admin_token))
        assert [a["title"] for a in res.json()["data"]] == ["Hidden"]

    async def test_pinned_first(self, client: AsyncClient, admin_token):
        await _create(client, admin_token, title="Pinned one", isPinned=True)
        await _create(client, admin_token, title="Newest")

        res = await client.get(f"{ARTICLES}/")
        titles = [a["title"] for a in res.json()["data"]]
        assert titles[0] == "Pinned one"

    async def test_multi_word_search(self, client: AsyncClient, admin_token):
        """모든 단어가 일치해야 함."""
        await _create(client, admin_token, title="Library hours", content="Open late during exams.")
        await _create(client, admin_token, title="Exam schedule", content="Rooms are listed.")

        res = await client.get(f"{ARTICLES}/", params={"search": "library exams"})
        assert [a["title"] for a in res.json()["data"]] == ["Library hours"]

    async def test_search_wildcards_are_literal(self, client: AsyncClient, admin_token):
        await _create(client, admin_token, title="Campus Opening")
        await _create(client, admin_token, title="Fees up 5%")

        res = await client.get(f"{ARTICLES}/", params={"search": "_"})
        assert res.json()["pagination"]["total"] == 0

        res = await client.get(f"{ARTICLES}/", params={"search": "5%"})
        assert [a["title"] for a in res.json()["data"]] == ["Fees up 5%"]

    async def test_tag_and_category_filters(self, client: AsyncClient, admin_token):
        await _create(client, admin_token, title="Sports day", category="events", tags=["sport"])
        await _create(client, admin_token, title="Grades out", category="academic", tags=["grades"])

        res = await client.get(f"{ARTICLES}/", params={"tag": "sport"})
        assert [a["title"] for a in res.json()["data"]] == ["Sports day"]

        res = await client.get(f"{ARTICLES}/", params={"category": "academic"})
        assert [a["title"] for a in res.json()["data"]] == ["Grades out"]

    async def test_pagination(self, client: AsyncClient, admin_token):
        for i in range(3):
            await _create(client, admin_token, title=f"Item {i}")
        res = await client.get(f"{ARTICLES}/", params={"limit": 2, "page": 2})
        body = res.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {
            "page": 2, "limit": 2, "total": 3, "totalPages": 2, "hasNextPage": False, "hasPrevPage": True,
        }


class TestReadArticle:
    """기사 조회 테스트."""

    async def test_get_increments_views(self, client: AsyncClient, admin_token):
        article = await _create(client, admin_token)
        await client.get(f"{ARTICLES}/{article['id']}")
        res = await client.get(f"{ARTICLES}/{article['id']}")
        assert res.status_code == 200
        assert res.json()["data"]["viewCount"] == 2

    async def test_get_by_slug(self, client: AsyncClient, admin_token):
        await _create(client, admin_token)
        res = await client.get(f"{ARTICLES}/slug/campus-opening")
        assert res.status_code == 200
        assert res.json()["data"]["title"] == "Campus Opening"

    async def test_draft_hidden_from_students(self, client: AsyncClient, admin_token, student_token):
        """미게시 기사는 외부에 404."""
        article = await _create(client, admin_token, isPublished=False)
        res = await client.get(f"{ARTICLES}/{article['id']}", headers=auth_header(student_token))
        assert res.status_code == 404

        res = await client.get(f"{ARTICLES}/{article['id']}", headers=auth_header(admin_token))
        assert res.status_code == 200


class TestEditArticle:
    """기사 수정/삭제 및 게시/고정 테스트."""

    async def test_title_change_regenerates_slug(self, client: AsyncClient, admin_token):
        article = await _create(client, admin_token)
        res = await client.put(f"{ARTICLES}/{article['id']}", json={"title": "Campus Closed"},
                               headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["data"]["slug"] == "campus-closed"

    async def test_author_can_edit(self, client: AsyncClient, staff_token):
        article = await _create(client, staff_token)
        res = await client.put(f"{ARTICLES}/{article['id']}", json={"summary": "Short"},
                               headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["data"]["summary"] == "Short"

    async def test_null_title_rejected(self, client: AsyncClient, admin_token):
        article = await _create(client, admin_token)
        res = await client.put(f"{ARTICLES}/{article['id']}", json={"title": None},
                               headers=auth_header(admin_token))
        assert res.status_code == 400

        res = await client.get(f"{ARTICLES}/{article['id']}", headers=auth_header(admin_token))
        assert res.json()["data"]["title"] == "Campus Opening"

    async def test_null_summary_clears_it(self, client: AsyncClient, admin_token):
        article = await _create(client, admin_token, summary="Short")
        res = await client.put(f"{ARTICLES}/{article['id']}", json={"summary": None},
                               headers=auth_header(admin_token))
        assert res.status_code == 200

    async def test_student_cannot_edit(self, client: AsyncClient, admin_token, student_token):
        article = await _create(client, admin_token)
        res = await client.put(f"{ARTICLES}/{article['id']}", json={"summary": "Hacked"},
                               headers=auth_header(student_token))
        assert res.status_code == 403

    async def test_unpublish_clears_published_at(self, client: AsyncClient, admin_token):
        article = await _create(client, admin_token)
        res = await client.post(f"{ARTICLES}/{article['id']}/unpublish", headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["isPublished"] is False
        assert data["publishedAt"] is None

        res = await client.post(f"{ARTICLES}/{article['id']}/publish", headers=auth_header(admin_token))
        assert res.json()["data"]["publishedAt"] is not None

    async def test_pin_and_unpin(self, client: AsyncClient, staff_token):
        article = await _create(client, staff_token)
        res = await client.post(f"{ARTICLES}/{article['id']}/pin", headers=auth_header(staff_token))
        assert res.json()["data"]["isPinned"] is True
        res = await client.post(f"{ARTICLES}/{article['id']}/unpin", headers=auth_header(staff_token))
        assert res.json()["data"]["isPinned"] is False

    async def test_teacher_cannot_publish(self, client: AsyncClient, admin_token, teacher_token):
        article = await _create(client, admin_token, isPublished=False)
        res = await client.post(f"{ARTICLES}/{article['id']}/publish", headers=auth_header(teacher_token))
        assert res.status_code == 403

    async def test_delete(self, client: AsyncClient, admin_token):
        article = await _create(client, admin_token)
        res = await client.delete(f"{ARTICLES}/{article['id']}", headers=auth_header(admin_token))
        assert res.status_code == 200
        res = await client.get(f"{ARTICLES}/{article['id']}")
        assert res.status_code == 404


class TestNewsStats:
    """기사 통계 테스트."""

    async def test_stats(self, client: AsyncClient, admin_token):
        published = await _create(client, admin_token, title="One", category="events")
        await _create(client, admin_token, title="Two", category="events", isPublished=False)
        await _create(client, admin_token, title="Three", category="academic")
        await client.get(f"{ARTICLES}/{published['id']}")

        res = await client.get(f"{ARTICLES}/stats", headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["total"] == 3
        assert data["published"] == 2
        assert data["drafts"] == 1
        assert data["totalViews"] == 1
        assert data["byCategory"] == {"events": 2, "academic": 1}

    async def test_stats_requires_manager(self, client: AsyncClient, student_token):
        res = await client.get(f"{ARTICLES}/stats", headers=auth_header(student_token))
        assert res.status_code == 403
