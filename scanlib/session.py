"""
DocumentSession - the pages of one scanning session and their composition.
"""

import logging
from collections import OrderedDict, deque

from .codec import ImageCodec
from .composer import PageComposer
from .editor import PageEditor
from .errors import DecodeFailure
from .raster import Raster


class DocumentSession:
    """
    Owns every ProcessedPage of the session and keeps the composer in step.

    Pages are stored in an arena keyed by page id; placed items refer to
    them only by id. Photos to scan are queued and edited one at a time:
    `next_editor()` decodes the next photo and `commit()` saves it into the
    arena, which places it on the output page. Deleting an item in the
    composer removes its page here, and removing a page here removes its
    item.
    """

    def __init__(self, codec=None, page=None, estimator=None, warper=None, pipeline=None):
        self.codec = codec or ImageCodec()
        self.estimator = estimator
        self.warper = warper
        self.pipeline = pipeline

        self.pages = OrderedDict()
        self.queue = deque()
        self.failures = []
        self.editor = None

        self.composer = PageComposer(page=page,
                                     on_remove_page=self.remove_page,
                                     on_duplicate_page=self.duplicate_page)

    def __len__(self):
        return len(self.pages)

    def enqueue(self, *handles):
        """Queue image or PDF handles (paths or bytes), or decoded Rasters"""
        self.queue.extend(handles)
        return len(self.queue)

    def next_editor(self):
        """
        Open the next queued photo in a PageEditor.

        Photos that fail to decode are logged, recorded in `failures` as
        (handle, error) and skipped; the rest of the queue is unaffected.
        A PDF opens at its first page and its remaining pages are queued
        right behind it, ahead of later handles.

        Returns:
            PageEditor, or None when the queue is empty
        """
        while self.queue:
            handle = self.queue.popleft()
            if isinstance(handle, Raster):
                raster = handle
            else:
                try:
                    rasters = self.codec.decode_pages(handle)
                except DecodeFailure as e:
                    logging.error(f"Skipping image: {e}")
                    self.failures.append((handle, e))
                    continue
                raster = rasters[0]
                if len(rasters) > 1:
                    logging.info(f"Queued {len(rasters) - 1} more PDF page(s)")
                    self.queue.extendleft(reversed(rasters[1:]))
            self.editor = PageEditor(raster, estimator=self.estimator,
                                     warper=self.warper, pipeline=self.pipeline)
            return self.editor
        self.editor = None
        return None

    def commit(self, editor=None):
        """Save the current (or given) editor and add the page to the session"""
        editor = editor or self.editor
        if editor is None:
            raise ValueError("No page is being edited")
        page = editor.save()
        if editor is self.editor:
            self.editor = None
        return self.add_page(page)

    def discard(self):
        """Drop the page currently being edited"""
        self.editor = None

    def add_page(self, page):
        """Add a ProcessedPage and place it on the output page"""
        self.pages[page.id] = page
        self.composer.sync(self.pages.values())
        logging.info(f"Added page {page.id} ({page.width}x{page.height}), {len(self.pages)} in session")
        return page

    def remove_page(self, image_id):
        """Remove a page and its placed item. Unknown ids are ignored."""
        page = self.pages.pop(image_id, None)
        if page is None:
            return None
        self.composer.sync(self.pages.values())
        logging.info(f"Removed page {image_id}, {len(self.pages)} in session")
        return page

    def duplicate_page(self, image_id):
        """Copy a page under a new id; returns the new id"""
        page = self.pages[image_id].clone()
        self.pages[page.id] = page
        return page.id

    def export_png(self):
        return self.composer.export_png(self.pages)

    def export_pdf(self):
        return self.composer.export_pdf(self.pages)

    def save(self, file_path):
        """
        Export the composed page to a file. A .pdf extension writes a PDF,
        anything else a PNG.
        """
        if str(file_path).lower().endswith('.pdf'):
            payload = self.export_pdf()
        else:
            payload = self.export_png()
        with open(file_path, 'wb') as f:
            f.write(payload)
        logging.info(f"Document saved to {file_path}")
        return file_path
