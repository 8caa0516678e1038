from processing.formatter import (
    emphasize_financial_figures,
    format_key_insights,
    generate_inline_links,
    highlight_numbers,
    link_keywords,
)

K8S = {"title": "Kubernetes Documentation", "url": "https://kubernetes.io/docs"}


def test_highlight_numbers():
    assert highlight_numbers("Up 20% to 3.5 units") == "Up **20%** to **3.5** units"
    assert highlight_numbers(None) == ""


def test_emphasize_financial_figures():
    assert emphasize_financial_figures("$3B and 12.5%") == "**$3B** and **12.5%**"
    assert emphasize_financial_figures("no figures") == "no figures"


def test_format_key_insights_bullets_every_line():
    text = "Revenue up 20%\n- Margin 5.5%"
    assert format_key_insights(text) == "• Revenue up **20%**\n• Margin **5.5%**"


def test_format_key_insights_normalizes_markers():
    assert format_key_insights("* one\n1. two") == "• one\n• two"
    assert format_key_insights("") == ""


def test_link_keywords():
    assert link_keywords(K8S) == ["Kubernetes", "Documentation", "kubernetes"]
    assert link_keywords({"title": "The best of this", "url": "https://www.news.com"}) == ["best", "news"]


def test_inline_link_inserted_once():
    result = generate_inline_links("Read the Kubernetes guide", [K8S])
    assert result == "Read the [Kubernetes](https://kubernetes.io/docs) guide"


def test_inline_links_respect_limit():
    text = "Kubernetes, Kubernetes, Kubernetes"
    result = generate_inline_links(text, [K8S], max_links=2)
    assert result.count("](https://kubernetes.io/docs)") == 2


def test_inline_links_without_sources():
    assert generate_inline_links("Kubernetes", []) == "Kubernetes"
    assert generate_inline_links("Kubernetes", None) == "Kubernetes"
    assert generate_inline_links("", [K8S]) == ""


def test_inline_links_skip_sources_without_url():
    assert generate_inline_links("Kubernetes", [{"title": "Kubernetes", "url": "nope"}]) == "Kubernetes"


def test_inline_links_leave_existing_links_and_urls_alone():
    openai = {"title": "OpenAI", "url": "https://openai.com"}
    text = "See the [OpenAI blog](https://openai.com/blog) and https://openai.com/about for OpenAI."
    assert generate_inline_links(text, [openai]) == (
        "See the [OpenAI blog](https://openai.com/blog) and https://openai.com/about "
        "for [OpenAI](https://openai.com)."
    )


def test_inline_links_skip_headings():
    result = generate_inline_links("## Kubernetes overview\nKubernetes runs containers", [K8S])
    assert result == "## Kubernetes overview\n[Kubernetes](https://kubernetes.io/docs) runs containers"
