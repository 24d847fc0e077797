import sys
import os
import asyncio

# Add parent directory to path to allow imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.services.recipe_detector import detect_recipes
from app.services.share_errors import ShareImportError
from app.services.share_import_service import ShareImportService

def preview_saved_page(path):
    print(f"\n--- Parsing saved page: {path} ---")
    with open(path, encoding="utf-8") as f:
        html = f.read()
    conversation = ShareImportService().parse_share_page(html)
    print(f"Title: {conversation['title']}")
    print(f"Assistant messages: {len(conversation['messages'])}")
    for candidate in detect_recipes(conversation["messages"]):
        print(f"  [{candidate['index']}] {candidate['title']} ({len(candidate['raw_text'])} chars)")

async def preview_live(url):
    print(f"\n--- Fetching share link: {url} ---")
    result = await ShareImportService().preview(url)
    print(f"Title: {result['title']}")
    print(f"Candidates: {len(result['candidates'])}")
    for item in result["candidates"]:
        print(f"  [{item['import_index']}] {item['title']} (parent: {item['suggested_parent_index']})")

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/verify_share_import.py <share-url | saved-page.html>")
        sys.exit(1)

    target = sys.argv[1]
    try:
        if os.path.isfile(target):
            preview_saved_page(target)
        else:
            asyncio.run(preview_live(target))
    except ShareImportError as e:
        print(f"Import failed: {e}")
        sys.exit(1)
