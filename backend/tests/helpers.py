"""Canned pages and selectors shared across test modules."""

ARTIST_SELECTORS = {
    "name": ".artist-name",
    "description": ".bio",
    "image": "img.hero",
    "genres": [".genre"],
}


def artist_page(name: str | None, bio: str = "Touring band") -> str:
    title = f"<h1 class='artist-name'>{name}</h1>" if name else ""
    slug = (name or "none").lower().replace(" ", "-")
    return f"""
    <html><body>
      {title}
      <div class="bio">{bio}</div>
      <img class="hero" src="/img/{slug}.jpg">
      <span class="genre">Rock</span><span class="genre">Soul</span>
    </body></html>
    """


def listing_page(*hrefs: str) -> str:
    items = "".join(f'<li><a class="artist-link" href="{href}">Artist</a></li>' for href in hrefs)
    return f"<html><body><ul>{items}</ul></body></html>"
