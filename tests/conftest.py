import textwrap

import pytest

from wikinews import db

PORTAL_HTML = textwrap.dedent(
    """\
    <html>
    <body>
      <div class="p-current-events-main">
        <div class="p-current-events-news" aria-labelledby="Topics_in_the_news">
          <h2 id="Topics_in_the_news">Topics in the news</h2>
          <ul>
            <li><b><a href="/wiki/Flood">Flooding</a></b> kills hundreds.</li>
            <li>An <a href="/wiki/Election">election</a> is held.</li>
          </ul>
        </div>
        <div class="p-current-events-calendar">
          <div aria-labelledby="Ongoing_events">
            <ul>
              <li><a href="/wiki/War">War</a></li>
            </ul>
          </div>
          <div aria-labelledby="Recent_deaths">
            <ul>
              <li><a href="/wiki/Jane_Doe">Jane Doe</a></li>
              <li><a href="https://example.org/john">John Roe</a></li>
            </ul>
          </div>
        </div>
      </div>
      <div class="current-events-main vevent" id="2025_July_24">
        <div class="current-events-heading plainlinks">
          <div class="current-events-title" role="heading">
            <span class="summary">24 July 2025 <span class="nobold">(Thursday)</span></span>
          </div>
        </div>
        <div class="current-events-content description">
          <p><b>Armed conflicts and attacks</b></p>
          <ul>
            <li>First <a href="/wiki/Item_1">item</a>.</li>
            <li>Second <i>item</i>.</li>
          </ul>
        </div>
      </div>
    </body>
    </html>
    """
)


@pytest.fixture
def portal_html():
    return PORTAL_HTML


@pytest.fixture
def session_factory(tmp_path):
    """File-backed SQLite so sessions can be opened from worker threads."""
    engine = db.init_engine(f"sqlite:///{tmp_path / 'wikinews.db'}")
    yield db.get_session_factory(engine)
    engine.dispose()
