"""Built-in templates used when a site does not provide its own."""

DEFAULT_LAYOUT = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  {% call block("head") %}<title>{% if title %}{{ title }} | {% endif %}{{ site_name }}</title>
  <meta name="description" content="{{ description }}">{% endcall %}
</head>
<body>
  <header>
    {% call block("header") %}<nav>
      <a href="{{ base_url }}/">{{ site_name }}</a>
      {% for nav_page in pages %}{% if nav_page.path %}<a href="{{ base_url }}{{ nav_page.url }}">{{ nav_page.title }}</a>{% endif %}{% endfor %}
    </nav>{% endcall %}
  </header>
  <main>
{{ content }}
  </main>
  <footer>
    {% call block("footer") %}<p>{{ site_name }}</p>{% endcall %}
  </footer>
</body>
</html>
"""

POST_TEMPLATE = """\
<article class="post">
  <h1>{{ post.title }}</h1>
  <time datetime="{{ post.date.isoformat() }}">{{ post.date | format_date }}</time>
  {{ post.content | safe }}
</article>
"""

PAGE_TEMPLATE = """\
<article class="page">
  <h1>{{ page.title }}</h1>
  {{ page.content | safe }}
</article>
"""

HOME_TEMPLATE = """\
<section class="home">
  <h1>{{ site_name }}</h1>
  <p>{{ description }}</p>
  <ul class="posts">
  {% for post in posts | limit(10) %}
    <li><a href="{{ base_url }}{{ post.url }}">{{ post.title }}</a> <time>{{ post.date | format_date }}</time></li>
  {% endfor %}
  </ul>
</section>
"""

POSTS_TEMPLATE = """\
<section class="posts">
  <h1>{{ title }}</h1>
  <p>{{ total }} posts</p>
  <ul>
  {% for post in posts %}
    <li><a href="{{ base_url }}{{ post.url }}">{{ post.title }}</a> <time>{{ post.date | format_date }}</time></li>
  {% endfor %}
  </ul>
</section>
"""

FALLBACK_TEMPLATES: dict[str, str] = {
    "post": POST_TEMPLATE,
    "page": PAGE_TEMPLATE,
    "home": HOME_TEMPLATE,
    "posts": POSTS_TEMPLATE,
}
