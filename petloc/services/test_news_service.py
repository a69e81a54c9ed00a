# petloc/services/test_news_service.py
import pytest
import requests

from petloc.conftest import FakeHttp, FakeResponse
from petloc.services.news_service import (
    NewsService, determine_category, reddit_image,
    NEWS_API_URL, DOG_FACTS_URL, DOG_IMAGE_URL, REDDIT_URL, SUBREDDITS,
)


def _news_api_payload(params):
    slug = params['q'].split()[0]
    return {'articles': [{
        'title': f'Notícia sobre {slug}',
        'description': 'Resumo',
        'url': f'https://news.example/{slug}',
        'urlToImage': None,
        'publishedAt': '2024-05-01T12:00:00Z',
        'source': {'name': 'Folha Pet'},
        'author': None,
    }]}


def _reddit_payload(subreddit):
    return {'data': {'children': [{'data': {
        'id': f'{subreddit}1',
        'title': 'My dog rescue story',
        'selftext': '',
        'permalink': f'/r/{subreddit}/comments/{subreddit}1/',
        'created_utc': 1714000000,
        'subreddit': subreddit,
        'author': 'dogfan',
        'thumbnail': 'self',
    }}]}}


@pytest.fixture
def http():
    fake = FakeHttp()
    fake.routes[NEWS_API_URL] = _news_api_payload
    for subreddit in SUBREDDITS:
        fake.routes[REDDIT_URL.format(subreddit=subreddit)] = _reddit_payload(subreddit)
    fake.routes[DOG_FACTS_URL] = {'facts': ['Dogs have about 1,700 taste buds.', 'Puppies are born deaf.']}
    fake.routes[DOG_IMAGE_URL] = [{'url': 'https://cdn.thedogapi.com/images/abc.jpg'}]
    return fake


@pytest.mark.parametrize('title, expected', [
    ('Dicas de saúde para gatos', 'Saúde'),
    ('Best dog food brands', 'Nutrição'),
    ('Adestramento positivo', 'Comportamento'),
    ('Rescue dogs need homes', 'Adoção'),
    ('Cachorro aprende a surfar', 'Entretenimento'),
    ('', 'Entretenimento'),
    ('Vet explains dog food', 'Saúde'),
    ('Veterinário recomenda vacina', 'Saúde'),
])
def test_determine_category(title, expected):
    assert determine_category(title) == expected


def test_all_sources_are_combined_and_sorted(http):
    articles = NewsService(http=http, api_key='key').fetch_all_pet_news()

    by_source = {}
    for article in articles:
        by_source.setdefault(article.api_source, []).append(article)
    assert len(by_source['Brasil']) == 4
    assert len(by_source['NewsAPI']) == 3
    assert len(by_source['Reddit']) == len(SUBREDDITS)
    assert len(by_source['DogAPI']) == 2

    dates = [a.published_at for a in articles]
    assert dates == sorted(dates, reverse=True)


def test_newsapi_defaults_and_params(http):
    articles = NewsService(http=http, api_key='key').fetch_news_api()

    first = articles[0]
    assert first.id == 'newsapi-https://news.example/pets'
    assert first.author == 'Autor desconhecido'
    assert first.image_url == ''
    assert first.source == 'Folha Pet'
    params = [p for url, p in http.calls if url == NEWS_API_URL][0]
    assert params['language'] == 'pt'
    assert params['pageSize'] == 5
    assert params['sortBy'] == 'publishedAt'


@pytest.mark.parametrize('api_key', [None, '', 'SUA_CHAVE_NEWSAPI_AQUI'])
def test_missing_api_key_skips_news_api(http, api_key):
    assert NewsService(http=http, api_key=api_key).fetch_news_api() == []
    assert not any(url == NEWS_API_URL for url, _ in http.calls)


def test_failing_sources_contribute_nothing(http):
    http.routes[NEWS_API_URL] = requests.Timeout('timeout')
    http.routes[DOG_FACTS_URL] = FakeResponse({}, status_code=500)
    for subreddit in SUBREDDITS:
        http.routes[REDDIT_URL.format(subreddit=subreddit)] = requests.ConnectionError('offline')

    articles = NewsService(http=http, api_key='key').fetch_all_pet_news()

    assert {a.api_source for a in articles} == {'Brasil'}
    assert len(articles) == 4


def test_one_failing_subreddit_skips_only_that_subreddit(http):
    http.routes[REDDIT_URL.format(subreddit='cats')] = FakeResponse({}, status_code=429)

    articles = NewsService(http=http).fetch_reddit()

    assert {a.source for a in articles} == {f'Reddit - r/{s}' for s in SUBREDDITS if s != 'cats'}
    assert articles[0].description == 'Clique para ver mais detalhes no Reddit'
    assert articles[0].category == 'Adoção'
    assert articles[0].author == 'u/dogfan'


def test_dog_facts_without_image(http):
    http.routes[DOG_IMAGE_URL] = requests.ConnectionError('offline')

    facts = NewsService(http=http).fetch_dog_facts()

    assert [f.image_url for f in facts] == ['', '']
    assert all(f.category == 'Entretenimento' for f in facts)
    assert facts[0].id != facts[1].id


def test_curated_ids_are_stable():
    first = [a.id for a in NewsService(http=FakeHttp()).fetch_curated()]
    second = [a.id for a in NewsService(http=FakeHttp()).fetch_curated()]
    assert first == second
    assert all(i.startswith('br-') for i in first)


def test_reddit_image_fallbacks():
    assert reddit_image({'thumbnail': 'https://t.example/a.jpg'}) == 'https://t.example/a.jpg'
    assert reddit_image({
        'thumbnail': 'default',
        'preview': {'images': [{'source': {'url': 'https://p.example/x.png?a=1&amp;b=2'}}]},
    }) == 'https://p.example/x.png?a=1&b=2'
    assert reddit_image({'thumbnail': 'self', 'url': 'https://i.example/dog.jpeg'}) == 'https://i.example/dog.jpeg'
    assert reddit_image({'thumbnail': 'self', 'url': 'https://reddit.com/r/dogs'}) == ''


def test_without_injected_session_each_call_uses_requests_get(http, monkeypatch):
    monkeypatch.setattr(requests, 'get', http.get)
    service = NewsService(api_key='key')

    articles = service.fetch_all_pet_news()

    assert service.http is None
    assert {a.api_source for a in articles} >= {'NewsAPI', 'Reddit'}
    assert any(url == NEWS_API_URL for url, _ in http.calls)
