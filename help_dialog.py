"""
help_dialog.py

Help dialogs for FieldBox.

Provides a tabbed help browser (Quick Start, Canvas, Keyboard Shortcuts)
and an About dialog.
"""

from __future__ import annotations

from PyQt6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QMessageBox,
    QTabWidget,
    QTextBrowser,
    QVBoxLayout,
)

SHORTCUTS_TAB = 2


class HelpDialog(QDialog):
    """Tabbed help dialog.

    Args:
        parent: Parent widget.
        initial_tab: Index of the tab to display on open
            (0=Quick Start, 1=Canvas, 2=Keyboard Shortcuts).
    """

    def __init__(self, parent=None, initial_tab: int = 0):
        super().__init__(parent)
        self.setWindowTitle("FieldBox Help")
        self.setMinimumSize(600, 480)
        self.resize(680, 540)

        layout = QVBoxLayout(self)

        self.tabs = QTabWidget()
        self.tabs.addTab(self._browser(_QUICK_START_HTML), "Quick Start")
        self.tabs.addTab(self._browser(_CANVAS_HTML), "Canvas")
        self.tabs.addTab(self._browser(_SHORTCUTS_HTML), "Keyboard Shortcuts")
        self.tabs.setCurrentIndex(initial_tab)
        layout.addWidget(self.tabs)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    @staticmethod
    def _browser(html: str) -> QTextBrowser:
        browser = QTextBrowser()
        browser.setOpenExternalLinks(True)
        browser.setHtml(html)
        return browser


def show_about_dialog(parent=None):
    """Show the About FieldBox dialog."""
    QMessageBox.about(
        parent,
        "About FieldBox",
        "<h2>FieldBox</h2>"
        "<p><b>v1.0</b> &mdash; OCR field annotation tool</p>"
        "<p>Assign OCR bounding boxes to named document fields and save "
        "the result next to each image.</p>"
        "<p>Built with PyQt6.</p>",
    )


# ── Static HTML content ──────────────────────────────

_QUICK_START_HTML = """\
<h2>Quick Start</h2>

<h3>1. Open a Data Folder</h3>
<p>Use <b>File &rarr; Open Data Folder</b> (or pass the folder on the
command line). Every <b>.png</b>, <b>.jpg</b> or <b>.jpeg</b> file with a
matching <b>.json</b> file is listed. To work against an annotation
server instead, start with <code>--server http://host:port</code>.</p>

<h3>2. Pick a Field</h3>
<p>The <b>Fields</b> dock lists the fields of the current document. Each
field has its own colour; a filled dot means a box is assigned.</p>

<h3>3. Click an OCR Box</h3>
<p>OCR boxes are drawn in grey. Click inside one to assign it to the
selected field. A box belongs to at most one field, so assigning it
again moves it.</p>

<h3>4. Save</h3>
<p><b>Ctrl+S</b> writes the document back to its JSON file. The image
selector marks images as viewed or updated.</p>
"""

_CANVAS_HTML = """\
<h2>Canvas</h2>

<table cellpadding="6" cellspacing="0" border="1"
       style="border-collapse:collapse; width:100%;">
  <tr style="background:#f0f0f0;">
    <th>Mouse</th><th>Action</th>
  </tr>
  <tr><td><b>Left click</b></td>
      <td>Assign the OCR box under the cursor to the selected field.</td></tr>
  <tr><td><b>Shift + drag</b> / <b>middle drag</b></td>
      <td>Pan the image.</td></tr>
  <tr><td><b>Wheel</b></td>
      <td>Zoom around the cursor (10% per step, 0.1x to 10x).</td></tr>
</table>

<p><b>View &rarr; Fit to Window</b> scales the canvas down to the window;
<b>Actual Size</b> shows one image pixel per screen pixel.</p>
"""

_SHORTCUTS_HTML = """\
<h2>Keyboard Shortcuts</h2>

<table cellpadding="6" cellspacing="0" border="1"
       style="border-collapse:collapse; width:100%;">
  <tr style="background:#f0f0f0;">
    <th>Category</th><th>Shortcut</th><th>Action</th>
  </tr>
  <tr><td rowspan="2"><b>Images</b></td>
      <td><code>Left</code></td><td>Previous image</td></tr>
  <tr><td><code>Right</code></td><td>Next image</td></tr>

  <tr><td rowspan="2"><b>Editing</b></td>
      <td><code>Ctrl+S</code></td><td>Save changes</td></tr>
  <tr><td><code>Delete</code> / <code>Backspace</code></td>
      <td>Reset the selected field</td></tr>

  <tr><td rowspan="3"><b>View</b></td>
      <td><code>Ctrl++</code></td><td>Zoom in</td></tr>
  <tr><td><code>Ctrl+-</code></td><td>Zoom out</td></tr>
  <tr><td><code>0</code></td><td>Reset zoom and pan</td></tr>

  <tr><td><b>Help</b></td>
      <td><code>F1</code></td><td>Open this Help dialog</td></tr>
</table>
"""
