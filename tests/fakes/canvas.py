class RecordingCanvas:
    """Records the canvas calls made by the layout, one list of events per page."""

    def __init__(self, page_height=792):
        self.page_height = page_height
        self.pages = [[]]
        self.font = None

    def setFillColor(self, color):
        pass

    def setStrokeColor(self, color):
        pass

    def setLineWidth(self, width):
        pass

    def setFont(self, name, size):
        self.font = (name, size)

    def rect(self, x, y, w, h, stroke=1, fill=0):
        self.pages[-1].append(("rect", x, y, w, h))

    def _text(self, x, y, text):
        self.pages[-1].append(("text", x, y, text, self.font))

    drawString = drawCentredString = drawRightString = _text

    def showPage(self):
        self.pages.append([])

    def finished_pages(self):
        # the final showPage leaves an empty trailing list
        return [p for p in self.pages if p]

    def page_texts(self, idx):
        return [e[3] for e in self.finished_pages()[idx] if e[0] == "text"]

