"""核心模块包。

包含爬虫系统的核心组件：
- config: 配置加载
- client: 带限流与重试的HTTP客户端
- sink: 结果批次输出
- container: 依赖注入容器，管理所有外部资源
- metrics: Prometheus 指标

容器依赖 scraper 包，这里不做包级导入，避免循环导入。
"""
