import unittest
import httpx
from fastapi.testclient import TestClient

from app.api.recipe_import import get_share_import_service
from app.main import app
from app.services.share_import_service import ShareImportService

from share_fixtures import APPLE_PIE, SHARE_URL, build_share_page

class BrokenService:
    async def preview(self, url):
        raise RuntimeError("boom")

class TestRecipeImportApi(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def use_page(self, response):
        service = ShareImportService(transport=httpx.MockTransport(lambda request: response))
        app.dependency_overrides[get_share_import_service] = lambda: service

    def test_preview_returns_camel_case_candidates(self):
        self.use_page(httpx.Response(200, text=build_share_page(title="Pies", assistant_texts=[APPLE_PIE])))

        response = self.client.post("/recipes/import/chatgpt-share/preview", json={"url": SHARE_URL})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["title"], "Pies")
        self.assertEqual(data["candidates"], [{
            "importIndex": 0,
            "title": "Tarte aux pommes",
            "rawText": APPLE_PIE,
            "suggestedParentIndex": None,
        }])

    def test_preview_accepts_share_url_field(self):
        self.use_page(httpx.Response(200, text=build_share_page(title="Pies", assistant_texts=[APPLE_PIE])))

        response = self.client.post("/recipes/import/chatgpt-share/preview", json={"shareUrl": SHARE_URL})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([c["importIndex"] for c in response.json()["candidates"]], [0])

    def test_preview_missing_or_non_string_url(self):
        for body in [{}, {"url": None}, {"url": 42}, {"shareUrl": ["x"]}]:
            response = self.client.post("/recipes/import/chatgpt-share/preview", json=body)
            self.assertEqual(response.status_code, 400, body)
            self.assertEqual(response.json()["detail"], "URL is required.")

    def test_preview_invalid_url(self):
        response = self.client.post("/recipes/import/chatgpt-share/preview", json={"url": "http://chatgpt.com/share/x"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Only HTTPS URLs are allowed.")

    def test_preview_not_found(self):
        self.use_page(httpx.Response(404))
        response = self.client.post("/recipes/import/chatgpt-share/preview", json={"url": SHARE_URL})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Share link not found or expired.")

    def test_preview_unreadable_page(self):
        self.use_page(httpx.Response(200, text="<html><body>maintenance</body></html>"))
        response = self.client.post("/recipes/import/chatgpt-share/preview", json={"url": SHARE_URL})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"], "Could not read conversation data from share link.")

    def test_preview_unexpected_error(self):
        app.dependency_overrides[get_share_import_service] = lambda: BrokenService()
        response = self.client.post("/recipes/import/chatgpt-share/preview", json={"url": SHARE_URL})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Could not import share link.")

    def test_validate(self):
        ok = self.client.post("/recipes/import/chatgpt-share/validate", json={"url": SHARE_URL})
        self.assertEqual(ok.json(), {"valid": True, "error": None})

        bad = self.client.post("/recipes/import/chatgpt-share/validate", json={})
        self.assertEqual(bad.json(), {"valid": False, "error": "URL is required."})

        aliased = self.client.post("/recipes/import/chatgpt-share/validate", json={"shareUrl": SHARE_URL})
        self.assertEqual(aliased.json(), {"valid": True, "error": None})

    def test_health(self):
        self.assertEqual(self.client.get("/health").json()["status"], "healthy")

if __name__ == '__main__':
    unittest.main()
