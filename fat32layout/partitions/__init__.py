from fat32layout.partitions.GPT import GPTProtectiveMBR, GPTProtectiveMBRPartitionRecord, \
    partition_record_init_clear, partition_record_init_span, partition_record_read, \
    partition_record_write, partition_record_valid, protective_mbr_init_span, \
    protective_mbr_read, protective_mbr_write, protective_mbr_valid
