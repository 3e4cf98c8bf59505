from prometheus_client import Counter, Gauge, Histogram

# 页面抓取统计
PAGES_FETCHED = Counter(
    "stockscraper_pages_fetched_total",
    "Total number of search result pages fetched",
    ["status"],  # status: success, error
)

# 爬取条目统计
SCRAPED_ITEMS = Counter(
    "stockscraper_scraped_items_total",
    "Total number of ISINs extracted from result pages",
)

# 结果文件统计
BATCHES_WRITTEN = Counter(
    "stockscraper_batches_written_total",
    "Total number of batch files written to the drop box",
)

# 入队任务统计
JOBS_ENQUEUED = Counter(
    "stockscraper_jobs_enqueued_total",
    "Total number of crawl jobs put on the queue",
    ["kind"],  # kind: seed, followup
)

# API 请求耗时分布
API_REQUEST_DURATION = Histogram(
    "stockscraper_api_request_duration_seconds",
    "Time spent on actual HTTP requests",
    ["status"],  # status: HTTP status code or 'error'
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

# 队列大小（背压）
QUEUE_SIZE = Gauge(
    "stockscraper_queue_size",
    "Current number of jobs waiting in the queue",
)

# 活跃 Worker 数量
ACTIVE_WORKERS = Gauge(
    "stockscraper_active_workers",
    "Number of workers currently processing a job",
)

# Worker 错误统计
WORKER_ERRORS = Counter(
    "stockscraper_worker_errors_total",
    "Total number of jobs that failed in a worker",
    ["policy"],  # policy: abort, skip
)
