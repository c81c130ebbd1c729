# ABOUTME: EPUB export of a novel and its chapters using ebooklib.
# ABOUTME: Reads through the store so draft visibility applies to exports too.

import html
import logging
import re
from pathlib import Path

from ebooklib import epub

from novella.store.catalog import NovelStore
from novella.store.types import Chapter, Novel

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


class ExportError(Exception):
    """Raised when an EPUB file cannot be built or written."""


def _paragraphs(content: str) -> str:
    """Render plain chapter text as escaped HTML paragraphs.

    Blank lines separate paragraphs; single newlines become line breaks.
    """
    blocks = [block.strip() for block in _PARAGRAPH_BREAK.split(content)]
    return "\n".join(
        "<p>" + "<br/>".join(html.escape(line) for line in block.splitlines()) + "</p>"
        for block in blocks
        if block
    )


def _title_page(novel: Novel, author_name: str) -> epub.EpubHtml:
    page = epub.EpubHtml(title=novel.title, file_name="title.xhtml", lang="en")
    parts = [f"<h1>{html.escape(novel.title)}</h1>", f"<p>{html.escape(author_name)}</p>"]
    if novel.description:
        parts.append(_paragraphs(novel.description))
    page.content = "<html><body>" + "\n".join(parts) + "</body></html>"
    return page


def _chapter_page(chapter: Chapter, index: int) -> epub.EpubHtml:
    page = epub.EpubHtml(title=chapter.title, file_name=f"chap{index:03d}.xhtml", lang="en")
    page.content = (
        f"<html><body><h2>{html.escape(chapter.title)}</h2>\n"
        f"{_paragraphs(chapter.content)}</body></html>"
    )
    return page


def build_novel_epub(novel: Novel, author_name: str, chapters: list[Chapter]) -> epub.EpubBook:
    """Assemble an EpubBook: a title page followed by one document per chapter.

    Args:
        novel: The novel whose metadata goes into the Dublin Core fields.
        author_name: Display name recorded as the creator.
        chapters: Chapters in reading order.

    Returns:
        An EpubBook ready for epub.write_epub.
    """
    book = epub.EpubBook()
    book.set_identifier(f"novella-{novel.id}")
    book.set_title(novel.title)
    book.set_language("en")
    book.add_author(author_name)
    if novel.description:
        book.add_metadata("DC", "description", novel.description)
    if novel.genre:
        book.add_metadata("DC", "subject", novel.genre)

    title_page = _title_page(novel, author_name)
    book.add_item(title_page)
    pages = [title_page]
    toc = [epub.Link("title.xhtml", novel.title, "title")]
    for index, chapter in enumerate(chapters, start=1):
        page = _chapter_page(chapter, index)
        book.add_item(page)
        pages.append(page)
        toc.append(epub.Link(page.file_name, chapter.title, f"chap{index:03d}"))

    book.toc = toc
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", *pages]
    return book


def export_novel_epub(
    store: NovelStore, novel_id: int, requester_id: int | None, dest: Path
) -> Path:
    """Write a novel and its chapters, in listing order, to an EPUB file.

    Args:
        store: The store to read from.
        novel_id: Novel to export.
        requester_id: Who is exporting; drafts export only for their author.
        dest: Output file path. Parent directories are created.

    Returns:
        The path written.

    Raises:
        NotFoundError: If the novel does not exist.
        ForbiddenError: If the novel is a draft and the requester is not its author.
        ExportError: If the EPUB cannot be written.
    """
    novel = store.get_novel(novel_id, requester_id)
    chapters = store.list_chapters(novel_id, requester_id)
    author = store.get_user(novel.author_id)

    book = build_novel_epub(novel, author.username, chapters)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        epub.write_epub(str(dest), book)
    except Exception as exc:
        raise ExportError(f"Failed to write EPUB: {dest}: {exc}") from exc

    logger.info("Exported novel %d (%d chapters) to %s", novel.id, len(chapters), dest)
    return dest
