"""fieldops -- 外勤任务派发与跟踪服务"""
