# petloc/services/news_service.py
"""
여러 외부 소스에서 반려동물 뉴스를 모아 하나의 피드로 만드는 서비스.

- 4개 소스(지역 큐레이션, 뉴스 검색 API, 커뮤니티 포럼, 강아지 상식)를 동시에 호출하고
  모든 소스가 끝날 때까지 기다립니다.
- 한 소스(또는 그 안의 한 요청)가 실패해도 해당 부분만 빈 결과가 되고 나머지는 그대로 사용합니다.
- 결과는 게시 시각 내림차순. 중복 제거와 캐시는 하지 않습니다.
"""

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

import requests

from petloc.models.news import NewsArticle
from petloc.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

NEWS_API_URL = 'https://newsapi.org/v2/everything'
NEWS_API_KEY_PLACEHOLDER = 'SUA_CHAVE_NEWSAPI_AQUI'
NEWS_API_QUERIES = [
    'pets OR animais OR saúde animal',
    'cachorro OR gato OR veterinário',
    'adoção animal OR resgate animais',
]
REDDIT_URL = 'https://www.reddit.com/r/{subreddit}/hot.json'
SUBREDDITS = ['pets', 'dogs', 'cats', 'dogtraining', 'PetAdvice']
DOG_FACTS_URL = 'https://dog-api.kinduff.com/api/facts'
DOG_IMAGE_URL = 'https://api.thedogapi.com/v1/images/search'
USER_AGENT = 'PetLoc/1.0 (pet news aggregator)'

DEFAULT_CATEGORY = 'Entretenimento'
# 순서대로 검사하며 처음 일치한 카테고리를 사용합니다.
CATEGORY_KEYWORDS = [
    ('Saúde', ['saúde', 'veterinár', 'doença', 'medicina', 'health', 'vet']),
    ('Nutrição', ['alimentação', 'nutrição', 'ração', 'dieta', 'food', 'nutrition']),
    ('Comportamento', ['comportamento', 'treinamento', 'adestramento', 'behavior', 'training']),
    ('Adoção', ['adoção', 'abandono', 'resgate', 'adoption', 'rescue']),
]

CURATED_ITEMS = [
    {
        'title': 'Campanha de Adoção - Cães SRD',
        'description': 'Centenas de cães aguardam por um lar amoroso. Venha conhecer nossos peludos!',
        'url': 'https://www.amparanimal.org.br',
        'image_url': 'https://images.unsplash.com/photo-1552053831-71594a27632d?w=800&h=600&fit=crop',
        'source': 'AMPARA Animal',
        'category': 'Adoção',
    },
    {
        'title': 'Feira de Adoção Responsável',
        'description': 'Domingo no Parque Ibirapuera - Venha adotar seu novo melhor amigo!',
        'url': 'https://www.adoteumfocinho.com.br',
        'image_url': 'https://images.unsplash.com/photo-1514888286974-6c03e2ca1dba?w=800&h=600&fit=crop',
        'source': 'Adote um Focinho',
        'category': 'Adoção',
    },
    {
        'title': 'Cuidados com pets no verão brasileiro',
        'description': 'Veterinários dão dicas essenciais para proteger seu pet no calor intenso',
        'url': 'https://exemplo.com/noticia1',
        'image_url': 'https://images.unsplash.com/photo-1509205477838-a534e43b84b9?w=800&h=600&fit=crop',
        'source': 'Pet Brasil',
        'category': 'Saúde',
    },
    {
        'title': 'Nova lei de maus-tratos a animais',
        'description': 'Entenda as mudanças na legislação brasileira sobre proteção animal',
        'url': 'https://exemplo.com/noticia2',
        'image_url': 'https://images.unsplash.com/photo-1453227588063-bb302b62f50b?w=800&h=600&fit=crop',
        'source': 'Jornal Animal',
        'category': 'Comportamento',
    },
]


def determine_category(title: Optional[str]) -> str:
    """제목의 키워드로 카테고리를 결정합니다. 일치하는 것이 없으면 'Entretenimento'."""
    if not title:
        return DEFAULT_CATEGORY
    lower_title = title.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower_title for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def _short_hash(value: str) -> str:
    return hashlib.sha1(value.encode('utf-8')).hexdigest()[:12]


def reddit_image(post: Dict[str, Any]) -> str:
    """썸네일 → 미리보기 원본 → 이미지 직접 링크 순서로 대표 이미지를 고릅니다."""
    thumbnail = post.get('thumbnail') or ''
    if thumbnail.startswith('http') and thumbnail not in ('self', 'default'):
        return thumbnail

    images = (post.get('preview') or {}).get('images') or []
    preview_url = ((images[0] if images else {}).get('source') or {}).get('url')
    if preview_url:
        return preview_url.replace('&amp;', '&')

    url = post.get('url') or ''
    if url.endswith(('.jpg', '.png', '.jpeg')):
        return url
    return ''


class NewsService:
    def __init__(self, http=None, api_key: Optional[str] = None, timeout: float = 10):
        # 주입된 세션이 없으면 호출마다 requests.get을 사용 (Session은 스레드 간 공유하지 않음)
        self.http = http
        self.api_key = api_key
        self.timeout = timeout

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = (self.http or requests).get(url, params=params, timeout=self.timeout, headers={'User-Agent': USER_AGENT})
        response.raise_for_status()
        return response.json()

    # --- 집계 ---
    def fetch_all_pet_news(self) -> List[NewsArticle]:
        """
        모든 소스를 동시에 호출하여 하나의 목록으로 합칩니다. 절대 예외를 던지지 않습니다.
        실패한 소스는 빈 목록으로 처리됩니다.
        """
        sources: List[Callable[[], List[NewsArticle]]] = [
            self.fetch_curated,
            self.fetch_news_api,
            self.fetch_reddit,
            self.fetch_dog_facts,
        ]
        articles: List[NewsArticle] = []
        with ThreadPoolExecutor(max_workers=len(sources)) as executor:
            futures = [(source.__name__, executor.submit(source)) for source in sources]
            for name, future in futures:
                try:
                    articles.extend(future.result())
                except Exception as e:
                    logger.warning(f"뉴스 소스 '{name}' 실패, 빈 결과로 처리합니다: {e}")

        articles.sort(key=lambda a: DateTimeUtils.sort_value(a.published_at), reverse=True)
        return articles

    # --- 소스별 수집 ---
    def fetch_curated(self) -> List[NewsArticle]:
        """지역 단체/뉴스 큐레이션 목록. id는 URL 기반이라 관리자 숨김 처리가 유지됩니다."""
        now = DateTimeUtils.now()
        return [
            NewsArticle(
                id=f"br-{_short_hash(item['url'])}",
                title=item['title'],
                description=item['description'],
                url=item['url'],
                image_url=item['image_url'],
                published_at=now,
                source=item['source'],
                category=item['category'],
                api_source='Brasil',
                author='ONG Brasileira',
            )
            for item in CURATED_ITEMS
        ]

    def fetch_news_api(self) -> List[NewsArticle]:
        if not self.api_key or self.api_key == NEWS_API_KEY_PLACEHOLDER:
            logger.warning("NEWS_API_KEY가 설정되지 않아 뉴스 검색 API를 건너뜁니다.")
            return []

        articles: List[NewsArticle] = []
        for query in NEWS_API_QUERIES:
            params = {'q': query, 'language': 'pt', 'pageSize': 5, 'sortBy': 'publishedAt', 'apiKey': self.api_key}
            try:
                data = self._get_json(NEWS_API_URL, params=params)
            except (requests.RequestException, ValueError) as e:
                logger.error(f"뉴스 검색 API 쿼리 실패 ('{query}'): {e}")
                continue

            for item in data.get('articles') or []:
                url = item.get('url') or ''
                title = item.get('title') or 'Sem título'
                articles.append(NewsArticle(
                    id=f"newsapi-{url}",
                    title=title,
                    description=item.get('description') or 'Sem descrição',
                    url=url,
                    image_url=item.get('urlToImage') or '',
                    published_at=self._parse_published_at(item.get('publishedAt')),
                    source=(item.get('source') or {}).get('name') or 'Fonte desconhecida',
                    category=determine_category(item.get('title') or ''),
                    api_source='NewsAPI',
                    author=item.get('author') or 'Autor desconhecido',
                ))
        return articles

    def fetch_reddit(self) -> List[NewsArticle]:
        articles: List[NewsArticle] = []
        for subreddit in SUBREDDITS:
            try:
                data = self._get_json(REDDIT_URL.format(subreddit=subreddit), params={'limit': 10})
            except (requests.RequestException, ValueError) as e:
                logger.error(f"r/{subreddit} 조회 실패: {e}")
                continue

            for child in (data.get('data') or {}).get('children') or []:
                post = child.get('data') or {}
                try:
                    published_at = DateTimeUtils.from_epoch_seconds(post.get('created_utc'))
                except ValueError:
                    published_at = DateTimeUtils.now()
                articles.append(NewsArticle(
                    id=f"reddit-{post.get('id')}",
                    title=post.get('title') or 'Sem título',
                    description=post.get('selftext') or 'Clique para ver mais detalhes no Reddit',
                    url=f"https://reddit.com{post.get('permalink', '')}",
                    image_url=reddit_image(post),
                    published_at=published_at,
                    source=f"Reddit - r/{post.get('subreddit') or 'unknown'}",
                    category=determine_category(post.get('title') or ''),
                    api_source='Reddit',
                    author=f"u/{post.get('author') or 'unknown'}",
                ))
        return articles

    def fetch_dog_facts(self) -> List[NewsArticle]:
        data = self._get_json(DOG_FACTS_URL, params={'number': 2})
        facts = data.get('facts') or []

        image_url = ''
        try:
            images = self._get_json(DOG_IMAGE_URL, params={'limit': 1})
            if images:
                image_url = images[0].get('url') or ''
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"강아지 이미지 조회 실패, 이미지 없이 진행합니다: {e}")

        now = DateTimeUtils.now()
        return [
            NewsArticle(
                id=f"dogapi-{_short_hash(fact)}",
                title='Curiosidade Canina 🐕',
                description=fact,
                url='https://thedogapi.com',
                image_url=image_url,
                published_at=now,
                source='The Dog API',
                category=DEFAULT_CATEGORY,
                api_source='DogAPI',
                author='The Dog API',
            )
            for fact in facts
        ]

    @staticmethod
    def _parse_published_at(value: Optional[str]):
        if not value:
            return DateTimeUtils.now()
        try:
            return DateTimeUtils.parse_iso_datetime(value)
        except ValueError:
            return DateTimeUtils.now()
