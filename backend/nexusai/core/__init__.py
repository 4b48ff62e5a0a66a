"""Core module - topic classification and logging setup."""

from .topic_classifier import Topic, classify_topic, evaluate_scope, is_in_scope

__all__ = ['Topic', 'classify_topic', 'evaluate_scope', 'is_in_scope']
